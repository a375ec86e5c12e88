# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""FastAPI application and routes for the DocumentDB Cluster API."""

import contextlib
import time
from . import __version__
from .common.connection import SessionFactory, SessionParams
from .constants import (
    ERROR_INVALID_INPUT,
    HEADER_ITEMS,
    HEADER_TASK_ID,
    POLICY_DOCDB_FULL_ACCESS,
    POLICY_DOCDB_READ_ONLY,
    POLICY_TAG_EDITOR_READ_ONLY,
)
from .context import ServiceContext
from .exceptions import DocDBApiException
from .models import DocDBCreateRequest, DocDBModifyRequest, DocDBResponse, PowerStateRequest
from .orchestrator import DocDBOrchestrator, parse_power_state, validate_create_request
from .tasks import BackgroundRunner, MemoryTaskTracker, Task, TaskTracker
from collections.abc import AsyncIterator
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from typing import List, Optional


API_PREFIX = '/v1/docdb'

REQUESTS = Counter(
    'docdb_api_requests_total',
    'Requests served, by handler and status code',
    ['method', 'handler', 'status'],
)
REQUEST_LATENCY = Histogram(
    'docdb_api_request_duration_seconds',
    'Time spent serving requests, by handler',
    ['method', 'handler'],
)


class OrchestratorBuilder:
    """Builds orchestrators bound to a role assumed in a tenant account."""

    def __init__(
        self,
        session_factory: SessionFactory,
        tracker: TaskTracker,
        runner: BackgroundRunner,
    ):
        """Initialize the builder.

        Args:
            session_factory: Assumes the per-account role
            tracker: Task tracker shared by every orchestrator
            runner: Background runner shared by every orchestrator
        """
        self.session_factory = session_factory
        self.tracker = tracker
        self.runner = runner

    async def __call__(self, account: str, policy_arns: List[str]) -> DocDBOrchestrator:
        """Return an orchestrator for account scoped to policy_arns."""
        params = SessionParams(
            role=SessionFactory.role_arn(account, ServiceContext.role_name()),
            policy_arns=policy_arns,
        )
        return await DocDBOrchestrator.new(
            org=ServiceContext.org(),
            session_factory=self.session_factory,
            session_params=params,
            tracker=self.tracker,
            runner=self.runner,
        )


def _error_response(status_code: int, kind: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'error': kind, 'message': message})


router = APIRouter(prefix=API_PREFIX)


@router.get('/ping', response_class=PlainTextResponse)
async def ping():
    """Liveness check."""
    return 'pong'


@router.get('/version')
async def version():
    """Return the service version."""
    return {'version': __version__}


@router.get('/flywheel', response_model=Task)
async def task_status(request: Request, task: str):
    """Return the state of a task started by create."""
    return await request.app.state.tracker.get(task)


@router.get('/metrics')
async def metrics():
    """Expose metrics in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.post('/{account}', status_code=202, response_model=DocDBResponse)
async def create_cluster(
    request: Request, response: Response, account: str, body: DocDBCreateRequest
):
    """Create a cluster and its instances, convergence is reported through a task."""
    validate_create_request(body)

    orchestrator = await request.app.state.orchestrators(account, [POLICY_DOCDB_FULL_ACCESS])
    result, task = await orchestrator.create(body)

    response.headers[HEADER_TASK_ID] = task.id
    return result


@router.get('/{account}', response_model=List[str])
async def list_clusters(request: Request, response: Response, account: str):
    """List the clusters of the configured org."""
    orchestrator = await request.app.state.orchestrators(
        account, [POLICY_DOCDB_READ_ONLY, POLICY_TAG_EDITOR_READ_ONLY]
    )
    names = await orchestrator.list()

    response.headers[HEADER_ITEMS] = str(len(names))
    return names


@router.get('/{account}/{name}', response_model=DocDBResponse)
async def get_cluster(request: Request, account: str, name: str):
    """Return a cluster of the configured org."""
    orchestrator = await request.app.state.orchestrators(account, [POLICY_DOCDB_READ_ONLY])
    return await orchestrator.details(name)


@router.put('/{account}/{name}', response_model=DocDBResponse)
async def modify_cluster(request: Request, account: str, name: str, body: DocDBModifyRequest):
    """Modify a cluster and, for an instance class change, its instances."""
    orchestrator = await request.app.state.orchestrators(account, [POLICY_DOCDB_FULL_ACCESS])
    return await orchestrator.modify(name, body)


@router.put('/{account}/{name}/power', status_code=204)
async def set_power_state(request: Request, account: str, name: str, body: PowerStateRequest):
    """Start or stop a cluster."""
    parse_power_state(body.state)

    orchestrator = await request.app.state.orchestrators(account, [POLICY_DOCDB_FULL_ACCESS])
    await orchestrator.set_state(name, body.state)
    return Response(status_code=204)


@router.delete('/{account}/{name}', status_code=204)
async def delete_cluster(request: Request, account: str, name: str, snapshot: bool = False):
    """Delete a cluster, optionally keeping a final snapshot."""
    orchestrator = await request.app.state.orchestrators(account, [POLICY_DOCDB_FULL_ACCESS])
    await orchestrator.delete(name, snapshot)
    return Response(status_code=204)


def create_app(
    session_factory: Optional[SessionFactory] = None,
    tracker: Optional[TaskTracker] = None,
    runner: Optional[BackgroundRunner] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        session_factory: Assumes roles in tenant accounts, built from the context if omitted
        tracker: Task tracker, in memory if omitted
        runner: Owner of background work, cancelled on shutdown

    Returns:
        FastAPI: the configured application
    """
    session_factory = session_factory or SessionFactory(
        region=ServiceContext.region(),
        external_id=ServiceContext.external_id(),
        endpoint_url=ServiceContext.endpoint_url(),
    )
    tracker = tracker or MemoryTaskTracker(ServiceContext.task_ttl())
    runner = runner or BackgroundRunner()

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await runner.shutdown()

    app = FastAPI(
        title='DocumentDB Cluster API',
        description='REST API for DocumentDB cluster management',
        version=__version__,
        lifespan=lifespan,
    )
    app.state.tracker = tracker
    app.state.runner = runner
    app.state.orchestrators = OrchestratorBuilder(session_factory, tracker, runner)

    @app.middleware('http')
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)

        # unmatched paths share one label
        handler = getattr(request.scope.get('endpoint'), '__name__', 'unmatched')
        REQUESTS.labels(request.method, handler, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(request.method, handler).observe(time.perf_counter() - started)
        logger.info(f'{request.method} {request.url.path} {response.status_code}')
        return response

    @app.exception_handler(DocDBApiException)
    async def handle_api_error(request: Request, exc: DocDBApiException):
        if exc.status_code >= 500:
            logger.error(f'{request.method} {request.url.path} failed: {exc}')
        return _error_response(exc.status_code, exc.kind, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        details = '; '.join(
            f'{".".join(str(part) for part in error.get("loc", []))}: {error.get("msg")}'
            for error in exc.errors()
        )
        return _error_response(400, 'BadRequest', f'{ERROR_INVALID_INPUT}: {details}')

    app.include_router(router)
    return app
