from src.middleware.request_logging import RESPONSE_TIME_HEADER, RequestLoggingMiddleware

__all__ = ["RESPONSE_TIME_HEADER", "RequestLoggingMiddleware"]
