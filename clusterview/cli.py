import asyncio
from dataclasses import dataclass
from pathlib import Path

from jsonargparse import CLI
from loguru import logger
from rich.console import Console
from rich.table import Table

from clusterview.core.cluster_file import load_cluster_file
from clusterview.core.config import ClusterViewSettings
from clusterview.core.logging import configure_logging
from clusterview.core.snapshot import ClusterSnapshot, build_snapshot
from clusterview.serialization import JsonSerializer
from clusterview.server import ClusterStateServer

console = Console()


@dataclass(slots=True)
class ClusterViewCLI:
    """clusterview command line interface for inspecting and serving cluster state.

    Args:
        settings_file: Optional TOML settings file with a [clusterview] table.
        log_level: Override the configured log level.
    """

    settings_file: str | None = None
    log_level: str | None = None

    def _settings(self, **overrides: object) -> ClusterViewSettings:
        settings = (
            ClusterViewSettings.from_toml(self.settings_file)
            if self.settings_file
            else ClusterViewSettings()
        )
        updates = {key: value for key, value in overrides.items() if value is not None}
        if self.log_level:
            updates["log_level"] = self.log_level
        if updates:
            settings = settings.model_copy(update=updates)
        configure_logging(
            settings.log_level,
            debug_scopes=settings.log_debug_scopes,
            colorize=settings.log_colorize,
        )
        return settings

    @staticmethod
    def _cluster_file(settings: ClusterViewSettings) -> Path:
        if settings.cluster_file is None:
            raise ValueError("A cluster file is required (--cluster_file)")
        return settings.cluster_file

    def snapshot(self, cluster_file: str | None = None, output: str = "json") -> None:
        """Prints the snapshot of a described cluster.

        Args:
            cluster_file: TOML or JSON cluster description.
            output: Output format, "json" or "table".
        """
        settings = self._settings(
            cluster_file=Path(cluster_file) if cluster_file else None
        )
        membership = load_cluster_file(self._cluster_file(settings))
        snapshot = build_snapshot(membership.current_view(), settings.port_range)

        if output == "table":
            display_snapshot(snapshot)
        elif output == "json":
            serializer = JsonSerializer(indent=settings.pretty_json)
            console.out(serializer.serialize_snapshot(snapshot).decode(), highlight=False)
        else:
            raise ValueError(f"Unknown output format: {output}")

    def serve(
        self,
        cluster_file: str | None = None,
        host: str | None = None,
        http_port: int | None = None,
    ) -> None:
        """Serves /cluster-state for a described cluster until interrupted.

        Args:
            cluster_file: TOML or JSON cluster description.
            host: Address to listen on.
            http_port: Explicit HTTP port instead of member port plus offset.
        """
        settings = self._settings(
            cluster_file=Path(cluster_file) if cluster_file else None,
            host=host,
            http_port=http_port,
        )
        membership = load_cluster_file(self._cluster_file(settings))
        server = ClusterStateServer(settings=settings, membership=membership)
        try:
            asyncio.run(server.serve_forever())
        except KeyboardInterrupt:
            logger.warning("Status server interrupted")


def display_snapshot(snapshot: ClusterSnapshot) -> None:
    """Render a snapshot as a rich table."""
    table = Table(
        title=(
            f"Cluster state from {snapshot.self_port}"
            f" (leader={snapshot.leader}, oldest={snapshot.oldest})"
        )
    )
    table.add_column("Port", justify="right")
    table.add_column("State")
    table.add_column("Member State")
    table.add_column("Leader")
    table.add_column("Oldest")
    for node in snapshot.nodes:
        table.add_row(
            str(node.port),
            node.state,
            node.member_state,
            "yes" if node.leader else "",
            "yes" if node.oldest else "",
        )
    console.print(table)


def main(args: list[str] | None = None) -> None:
    CLI(ClusterViewCLI, args=args)  # type: ignore[no-untyped-call]


if __name__ == "__main__":
    main()
