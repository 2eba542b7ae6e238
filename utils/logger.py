"""
Enhanced logging with rich formatting and colorlog.
Provides Spring Boot-style logging with beautiful terminal output.
"""

import logging
import re
import sys
import uuid
from pathlib import Path
from typing import Optional

import colorlog
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Global console for rich output
console = Console()

# Request ID context for correlation
_request_context = {}


def get_request_id() -> str:
    """Get or create request ID for current context."""
    if "request_id" not in _request_context:
        _request_context["request_id"] = str(uuid.uuid4())[:8]
    return _request_context["request_id"]


def set_request_id(request_id: str):
    """Set request ID for current context."""
    _request_context["request_id"] = request_id


def clear_request_id():
    """Clear request ID from context."""
    _request_context.clear()


class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive data like API keys in log messages."""

    # Patterns to mask (key prefix -> replacement)
    SENSITIVE_PATTERNS = [
        ("hf_", "hf_***MASKED***"),
        ("sk-", "sk-***MASKED***"),
        ("api_key=", "api_key=***MASKED***"),
        ("API_KEY=", "API_KEY=***MASKED***"),
        ("token=", "token=***MASKED***"),
        ("base64,", "base64,***TRUNCATED***"),
    ]

    def filter(self, record):
        if hasattr(record, 'msg') and record.msg:
            msg = str(record.msg)
            for pattern, replacement in self.SENSITIVE_PATTERNS:
                if pattern in msg:
                    regex = rf"({re.escape(pattern)})([a-zA-Z0-9_+/=-]+)"
                    msg = re.sub(regex, replacement, msg)
            record.msg = msg
        return True


class ContextFilter(logging.Filter):
    """Add request ID and component name to log records."""

    def __init__(self, component: str = "SYSTEM"):
        super().__init__()
        self.component = component

    def filter(self, record):
        record.request_id = get_request_id()
        record.component = self.component
        return True


def setup_logger(
    name: str,
    level: str = "INFO",
    log_file: Optional[Path] = None,
    component: str = None
) -> logging.Logger:
    """
    Setup logger with colorlog formatting.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for logging
        component: Component name for contextualized logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    # Component name (use module name if not specified)
    comp = component or name.split(".")[-1].upper()

    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))

    console_formatter = colorlog.ColoredFormatter(
        fmt=(
            "%(log_color)s[%(asctime)s.%(msecs)03d] "
            "%(levelname)-8s "
            "%(white)s[%(request_id)s] "
            "%(cyan)s[%(component)s] "
            "%(message_log_color)s%(message)s"
        ),
        datefmt="%Y-%m-%d %H:%M:%S",
        log_colors={
            "DEBUG": "blue",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "red,bg_white",
        },
        secondary_log_colors={
            "message": {
                "DEBUG": "white",
                "INFO": "white",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            }
        },
        reset=True,
        style="%"
    )

    console_handler.setFormatter(console_formatter)
    console_handler.addFilter(ContextFilter(comp))
    console_handler.addFilter(SensitiveDataFilter())
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)

        # JSON-style formatter for file (easier parsing)
        file_formatter = logging.Formatter(
            fmt=(
                '{"timestamp":"%(asctime)s.%(msecs)03d",'
                '"level":"%(levelname)s",'
                '"request_id":"%(request_id)s",'
                '"component":"%(component)s",'
                '"logger":"%(name)s",'
                '"message":"%(message)s"}'
            ),
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        file_handler.setFormatter(file_formatter)
        file_handler.addFilter(ContextFilter(comp))
        file_handler.addFilter(SensitiveDataFilter())
        logger.addHandler(file_handler)

    return logger


def print_run_summary(
    summary: dict,
    total_images: int,
    missing: int = 0,
    failed_chunks: int = 0,
    processing_time: Optional[float] = None
):
    """
    Print the hazard counts of a finished run.

    Args:
        summary: BatchSummary as dict
        total_images: Number of images submitted
        missing: Images the descriptive pass never returned
        failed_chunks: Chunks recorded as failed (partial mode only)
        processing_time: Total processing time in seconds
    """
    table = Table(title="Hazard Classification", show_header=True, header_style="bold magenta")
    table.add_column("Condition", style="cyan", width=20)
    table.add_column("Images", justify="right")
    table.add_row("[red]Fire hazard[/red]", str(summary.get("fire_hazard_count", 0)))
    table.add_row("[yellow]Trip/Fall[/yellow]", str(summary.get("trip_fall_count", 0)))
    table.add_row("[green]None[/green]", str(summary.get("none_count", 0)))
    console.print(table)

    style = "green" if not (missing or failed_chunks) else "yellow"
    content = f"[bold]Submitted:[/bold] {total_images}"
    content += f"\n[bold]Missing from model output:[/bold] {missing}"
    content += f"\n[bold]Failed chunks:[/bold] {failed_chunks}"
    if processing_time is not None:
        content += f"\n[bold]Processing Time:[/bold] {processing_time:.2f}s"

    console.print(Panel(content, title="Run Complete", border_style=style, expand=False))


def print_error(error_type: str, message: str, details: Optional[str] = None):
    """
    Print error message in formatted panel.

    Args:
        error_type: Type of error
        message: Error message
        details: Optional detailed error information
    """
    content = f"[bold red]{error_type}[/bold red]\n\n{message}"
    if details:
        content += f"\n\n[dim]{details}[/dim]"

    panel = Panel(
        content,
        title="❌ Error",
        border_style="red",
        expand=False
    )
    console.print(panel)
