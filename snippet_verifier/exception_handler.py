import logging
import traceback
from typing import Any, Dict, List, Optional


LOGGER_NAME = "snippet_verifier"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure the shared verifier logger once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


class ErrorHandler:
    """Collects internal verifier faults so they can be summarised after a run."""

    def __init__(self, log_level: Optional[str] = None):
        if log_level is not None:
            self.logger = configure_logging(log_level)
        else:
            self.logger = logging.getLogger(LOGGER_NAME)
        self.errors: List[Dict[str, Any]] = []

    def handle_error(self, error: Exception, context: Dict[str, Any]) -> Dict[str, Any]:
        """Process and log error with context information."""
        error_info = {
            "type": type(error).__name__,
            "message": str(error),
            "context": context,
            "traceback": traceback.format_exc() if self.logger.isEnabledFor(logging.DEBUG) else None
        }

        self.logger.error(
            "%s: %s | Context: %s", error_info["type"], error_info["message"], context
        )

        self.errors.append(error_info)

        return error_info

    def collect_snippet_error(self, error: Exception, snippet_id: int, stage: str) -> Dict[str, Any]:
        """Collect an internal fault raised while handling one snippet."""
        context = {
            "snippet_id": snippet_id,
            "stage": stage,
        }
        return self.handle_error(error, context)

    def get_error_summary(self) -> Dict[str, Any]:
        """Generate summary of all collected errors."""
        if not self.errors:
            return {"total_errors": 0, "error_types": {}, "failed_snippets": []}

        error_types: Dict[str, int] = {}
        failed_snippets = []

        for error in self.errors:
            error_type = error["type"]
            error_types[error_type] = error_types.get(error_type, 0) + 1

            context = error.get("context", {})
            if "snippet_id" in context:
                failed_snippets.append({
                    "snippet_id": context["snippet_id"],
                    "error": error["message"],
                    "stage": context.get("stage", "unknown")
                })

        return {
            "total_errors": len(self.errors),
            "error_types": error_types,
            "failed_snippets": failed_snippets
        }

    def clear_errors(self):
        """Clear collected errors."""
        self.errors.clear()

    def format_error_report(self) -> str:
        """Format user-friendly error report."""
        summary = self.get_error_summary()

        if summary["total_errors"] == 0:
            return ""

        lines = [
            f"\n⚠️  Internal Error Summary: {summary['total_errors']} errors occurred",
            ""
        ]

        if summary["error_types"]:
            lines.append("Error Types:")
            for error_type, count in summary["error_types"].items():
                lines.append(f"  • {error_type}: {count}")
            lines.append("")

        if summary["failed_snippets"]:
            lines.append("Affected Snippets:")
            for failure in summary["failed_snippets"][:5]:
                lines.append(f"  • #{failure['snippet_id']} ({failure['stage']}): {failure['error']}")

            if len(summary["failed_snippets"]) > 5:
                lines.append(f"  ... and {len(summary['failed_snippets']) - 5} more")

        return "\n".join(lines)
