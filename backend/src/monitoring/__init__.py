from src.monitoring.metrics import get_metrics, record_request, record_search, record_timeout, reset_metrics

__all__ = ["get_metrics", "record_request", "record_search", "record_timeout", "reset_metrics"]
