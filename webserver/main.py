import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from trajectory_simulation.engine import PhysicsEngine, result_to_dict
from trajectory_simulation.errors import CalculationError, InvalidInputError
from utility.config_reader import CONFIG

logger = logging.getLogger(__name__)


async def _payload(request: Request):
    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidInputError("request body is not valid JSON") from exc


def create_app(engine: PhysicsEngine | None = None) -> FastAPI:
    app = FastAPI(title="Golf Ball Flight Simulator")
    app.state.engine = engine or PhysicsEngine.from_config(CONFIG)

    @app.exception_handler(CalculationError)
    async def calculation_error_handler(request: Request, exc: CalculationError):
        logger.info("rejected %s: %s", request.url.path, exc)
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.post('/simulate')
    async def simulate(request: Request):
        data = await _payload(request)
        result = request.app.state.engine.calculate_trajectory(data)
        return result_to_dict(result)

    @app.post('/adjust')
    async def adjust(request: Request):
        data = await _payload(request)
        return request.app.state.engine.calculate_adjustment(data).to_dict()

    return app


app = create_app()


if __name__ == '__main__':
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    host = CONFIG.get("Server", "host", fallback="0.0.0.0")
    port = int(os.getenv('PORT', CONFIG.getint("Server", "port", fallback=8000)))
    uvicorn.run(app, host=host, port=port)
