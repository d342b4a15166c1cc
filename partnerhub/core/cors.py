# partnerhub/core/cors.py

from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send


class ApiCORSMiddleware(CORSMiddleware):
    """
    CORS по списку разрешенных источников только для путей API.
    Публичные точки трекинга (все пути вне api_prefix) встраиваются на любые
    лендинги, поэтому их preflight и заголовки отдает сам роутер трекинга.
    """

    def __init__(self, app: ASGIApp, api_prefix: str = "/api/", **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.api_prefix = api_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and not scope["path"].startswith(self.api_prefix):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)
