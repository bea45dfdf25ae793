"""
FastAPI routes for webhook ingestion, job queries, human input and live updates.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.staticfiles import StaticFiles

from app.error_handlers import job_not_found, register_error_handlers
from app.middleware_logging import register_request_logging
from core.exceptions import ValidationError
from core.logger import setup_logger
from core.schema import HumanInputRequest
from services.runtime import Runtime, build_runtime

logger = setup_logger(__name__)


async def stop_sender(sender: asyncio.Task) -> None:
    """Cancel a websocket send loop and collect how it ended."""
    sender.cancel()
    try:
        await sender
    except asyncio.CancelledError:
        pass
    except Exception as e:
        # The client went away mid-send
        logger.debug(f"Websocket sender stopped: {e}")


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        runtime: Pipeline components (built from settings if omitted)

    Returns:
        Configured FastAPI app; the lifespan starts the queue worker and cleanup loop
    """
    runtime = runtime or build_runtime()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await runtime.start()
        logger.info("Job pipeline started")
        try:
            yield
        finally:
            await runtime.stop()
            logger.info("Job pipeline stopped")

    app = FastAPI(
        title="Firefly AI Categorizer",
        description="Categorize Firefly III transactions with an LLM",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.runtime = runtime

    register_error_handlers(app)
    register_request_logging(app)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "firefly_ai_categorizer",
            "version": "1.0.0",
            "queue": {
                "pending": runtime.queue.pending,
                "current_job": runtime.queue.current_job,
                "running": runtime.queue.running,
            },
            "jobs": runtime.store.count(),
            "subscribers": runtime.broadcaster.subscriber_count,
        }

    @app.post("/webhook")
    async def webhook(request: Request):
        """
        Accept a Firefly transaction webhook and queue it for categorization.

        Returns:
            200 with the job id, or 400 with the violated rule
        """
        logger.info("Webhook triggered")
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError("Request body is not valid JSON", rule="body")

        job = runtime.service.submit(payload)
        logger.info(f"Webhook accepted as job {job.id}")
        return {"status": "queued", "jobId": job.id}

    @app.get("/jobs")
    async def list_jobs():
        return [job.to_json() for job in runtime.store.get_jobs()]

    @app.get("/jobs/{job_id}")
    async def get_job(job_id: str):
        job = runtime.store.get_job(job_id)
        if job is None:
            raise job_not_found(job_id)
        return job.to_json()

    @app.post("/jobs/cleanup")
    async def cleanup_jobs():
        """Run the cleanup sweep now."""
        deleted = runtime.cleanup.run_now()
        return {"deleted": deleted}

    @app.post("/human-input")
    async def human_input(body: HumanInputRequest):
        """
        Finish a job waiting on human input with an operator-chosen category.

        Returns:
            The finished job
        """
        if runtime.store.get_job(body.job_id) is None:
            raise job_not_found(body.job_id)

        job = await runtime.resolver.resolve(body.job_id, body.category)
        return job.to_json()

    @app.websocket("/ws")
    async def job_updates(websocket: WebSocket):
        """Live job events; the first message is the full job list."""
        await websocket.accept()
        subscriber = runtime.broadcaster.connect()

        async def pump():
            while True:
                message = await subscriber.next_message()
                await websocket.send_json(message)

        sender = asyncio.create_task(pump())
        try:
            # Incoming frames are ignored; this only waits for the disconnect
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        except WebSocketDisconnect:
            pass
        finally:
            await stop_sender(sender)
            runtime.broadcaster.disconnect(subscriber)

    static_path = runtime.settings.static_path()
    if static_path is not None:
        app.mount("/", StaticFiles(directory=str(static_path), html=True), name="ui")
        logger.info(f"Serving UI from {static_path}")

    return app
