import asyncio

import uvicorn

from appbundle import build_app
from appbundle.config import Config


async def serve() -> None:
    config = Config()
    # Routes and filters are mounted before uvicorn starts the app.
    api = await build_app(config)
    server = uvicorn.Server(uvicorn.Config(api, host="0.0.0.0", port=config.PORT, log_config=None))
    await server.serve()


if __name__ == "__main__":
    asyncio.run(serve())
