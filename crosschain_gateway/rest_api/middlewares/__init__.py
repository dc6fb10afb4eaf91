from crosschain_gateway.rest_api.middlewares.route_logger import RouteLoggerMiddleware

__all__ = ['RouteLoggerMiddleware']
