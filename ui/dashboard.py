"""Real-time CLI dashboard for proxy monitoring."""

from collections import Counter
from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log

console = Console()


class RequestInfo:
    """Info about a single proxied request."""

    def __init__(
        self,
        mount: str,
        method: str,
        url: str,
        status: int,
        duration_ms: float,
        timestamp: datetime,
    ):
        self.mount = mount
        self.method = method
        self.url = url[:80] + "..." if len(url) > 80 else url
        self.status = status
        self.duration_ms = duration_ms
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing traffic per mount."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[RequestInfo] = []
        self._max_recent = 10
        self._request_count: Counter[str] = Counter()
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_request(
        self,
        mount: str,
        method: str,
        url: str,
        status: int,
        *,
        duration_ms: float,
        request_id: str,
    ) -> None:
        """Log a request relayed through a mount."""
        with self._lock:
            self._request_count[mount] += 1
            info = RequestInfo(
                mount=mount,
                method=method,
                url=url,
                status=status,
                duration_ms=duration_ms,
                timestamp=datetime.now(),
            )
            self._recent.insert(0, info)
            self._recent = self._recent[: self._max_recent]
            self._refresh()

            write_cli_log(
                mount.upper(),
                f"{method} {url}",
                status=status,
                ms=f"{duration_ms:.0f}",
                request_id=request_id,
            )

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with per-mount stats."""
        stats = Text()
        stats.append("Mount Proxy", style="bold cyan")
        for mount in self.config.mounts:
            stats.append("  |  ")
            stats.append(f"{mount.name}: {self._request_count[mount.name]}", style="magenta")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build the recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Mount", width=10)
            table.add_column("Method", width=7)
            table.add_column("Upstream", ratio=3)
            table.add_column("Status", width=6)
            table.add_column("ms", width=7, justify="right")

            for req in self._recent:
                status_style = "red" if req.status >= 400 else "green"
                table.add_row(
                    req.timestamp.strftime("%H:%M:%S"),
                    req.mount,
                    req.method,
                    req.url,
                    Text(str(req.status), style=status_style),
                    f"{req.duration_ms:.0f}",
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Upstream: {self.config.upstream.base_url}",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
