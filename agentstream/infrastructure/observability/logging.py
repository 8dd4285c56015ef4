import structlog
import logging
import sys
from typing import Dict, Any, List, Optional


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "agentstream",
    environment: str = "development",
    version: str = "unknown"
) -> None:
    """Setup structured logging configuration"""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO)
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_turn_context,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=environment,
        version=version
    )


def setup_logging_from_settings(settings) -> None:
    """Configure logging from a ``Settings`` instance"""

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        service_name=settings.service_name,
        environment=settings.environment,
        version=settings.service_version
    )


def add_turn_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the id of the turn being processed, when one is bound"""

    turn_id = structlog.contextvars.get_contextvars().get("turn_id")
    if turn_id and "turn_id" not in event_dict:
        event_dict["turn_id"] = turn_id

    return event_dict


class AgentLogger:
    """Structured events for the agent pipeline"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_turn_event(
        self,
        event_type: str,
        entry_point: str,
        data: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Log turn lifecycle events (start, end, failure)"""

        self.logger.info(
            "turn_event",
            event_type=event_type,
            entry_point=entry_point,
            data=data or {},
            **kwargs
        )

    def log_tool_execution(
        self,
        tool_name: str,
        tool_call_id: str,
        duration_ms: Optional[float] = None,
        success: bool = True,
        error: Optional[str] = None
    ):
        """Log tool execution events"""

        self.logger.info(
            "tool_execution",
            tool_name=tool_name,
            tool_call_id=tool_call_id,
            duration_ms=duration_ms,
            success=success,
            error=error
        )

    def log_attachments(self, source: str, paths: List[str]):
        """Log attachments surfaced from model output"""

        if not paths:
            return
        self.logger.info(
            "attachments_extracted",
            source=source,
            count=len(paths),
            paths=paths
        )


agent_logger = AgentLogger("agentstream")


class MetricsCollector:
    """In-process latency and counter metrics, each sample also logged"""

    def __init__(self):
        self.latencies: Dict[str, List[float]] = {}
        self.counters: Dict[str, int] = {}

    def record_latency(self, operation: str, duration_ms: float, tags: Optional[Dict[str, str]] = None):
        self.latencies.setdefault(operation, []).append(duration_ms)

        agent_logger.logger.debug(
            "metric",
            metric_type="latency",
            operation=operation,
            duration_ms=duration_ms,
            tags=tags or {}
        )

    def increment_counter(self, name: str, value: int = 1, tags: Optional[Dict[str, str]] = None):
        self.counters[name] = self.counters.get(name, 0) + value

        agent_logger.logger.debug(
            "metric",
            metric_type="counter",
            name=name,
            value=value,
            tags=tags or {}
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = dict(self.counters)
        for operation, samples in self.latencies.items():
            summary[f"latency.{operation}"] = {
                "count": len(samples),
                "avg": sum(samples) / len(samples),
                "min": min(samples),
                "max": max(samples)
            }
        return summary

    def reset(self):
        self.latencies.clear()
        self.counters.clear()


# Global metrics collector
metrics = MetricsCollector()
