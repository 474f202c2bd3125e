from nuopen_bot.middlewares.services_middleware import ServicesMiddleware

__all__ = ["ServicesMiddleware"]
