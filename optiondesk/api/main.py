"""
FastAPI Main Application
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..backends import create_backend
from ..config import Config, get_config
from ..database.connection import DatabaseManager
from ..errors import (
    NotFoundError,
    OptionDeskError,
    OrchestrationError,
    PoolError,
    ValidationError,
)
from ..transactions import AuditGateway, TransactionOrchestrator
from ..utils.logger import get_logger, setup_logger
from .models import (
    ApiResponse,
    AuditLogOut,
    CalculateRequest,
    CalculationOut,
    HealthResponse,
    MetricsOut,
    PreviewRequest,
    TransactionOut,
)

logger = get_logger(__name__)

GENERIC_SERVER_ERROR = "Server error during transaction processing"
POOL_UNAVAILABLE = "Service temporarily unavailable, please retry later"


# ============================================================================
# 依赖注入
# ============================================================================

def get_orchestrator(request: Request) -> TransactionOrchestrator:
    return request.app.state.orchestrator


def get_audit_gateway(request: Request) -> AuditGateway:
    return request.app.state.audit_gateway


router = APIRouter(prefix="/api")


# ============================================================================
# 交易相关API
# ============================================================================

@router.post("/calculate", response_model=ApiResponse[CalculationOut], tags=["Transactions"])
def calculate(
    body: CalculateRequest,
    orchestrator: TransactionOrchestrator = Depends(get_orchestrator),
):
    """计算指标、保存交易并返回用户全部交易"""
    try:
        result = orchestrator.calculate_and_store(body.to_params())
    except OrchestrationError as e:
        if not e.is_partial_success:
            raise
        # 写入已提交，不能当作失败处理
        logger.warning(
            "Transaction %s stored but read-back failed: %s", e.transaction_id, e.cause
        )
        return ApiResponse[CalculationOut](
            success=True,
            message="Transaction stored, but the transaction history could not be loaded",
            data=CalculationOut(
                breakeven=e.metrics.breakeven,
                risk_rate=e.metrics.risk_rate,
                transaction_id=e.transaction_id,
                user_transactions=None,
                complete=False,
            ),
        )

    return ApiResponse[CalculationOut](
        success=True,
        message="Transaction calculated and stored successfully",
        data=CalculationOut(
            breakeven=result.breakeven,
            risk_rate=result.risk_rate,
            transaction_id=result.transaction_id,
            user_transactions=[TransactionOut.from_record(r) for r in result.user_transactions],
        ),
    )


@router.post("/preview", response_model=ApiResponse[MetricsOut], tags=["Transactions"])
def preview(
    body: PreviewRequest,
    orchestrator: TransactionOrchestrator = Depends(get_orchestrator),
):
    """只计算指标，不保存"""
    metrics = orchestrator.preview_metrics(
        body.strategy_type, body.current_price, body.strike_price, body.premium
    )
    return ApiResponse[MetricsOut](success=True, data=MetricsOut.from_metrics(metrics))


@router.get("/transactions", response_model=ApiResponse[List[TransactionOut]], tags=["Transactions"])
def list_transactions(
    user_id: int = Query(..., alias="userId", description="用户ID"),
    orchestrator: TransactionOrchestrator = Depends(get_orchestrator),
):
    """查询用户交易"""
    records = orchestrator.list_user_transactions(user_id)
    return ApiResponse[List[TransactionOut]](
        success=True,
        data=[TransactionOut.from_record(r) for r in records],
    )


# ============================================================================
# 审计日志API
# ============================================================================

@router.get("/audit-logs", response_model=ApiResponse[List[AuditLogOut]], tags=["Audit"])
def list_audit_logs(
    user_id: int = Query(..., alias="userId", description="用户ID"),
    gateway: AuditGateway = Depends(get_audit_gateway),
):
    """按用户角色返回可见的审计日志"""
    entries = gateway.get_audit_logs_for_user(user_id)
    return ApiResponse[List[AuditLogOut]](
        success=True,
        data=[AuditLogOut.from_entry(entry) for entry in entries],
    )


# ============================================================================
# 错误处理
# ============================================================================

def _error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求体/参数无法解析"""
    errors = exc.errors()
    if errors:
        location = [str(part) for part in errors[0].get('loc', ())[1:]]
        message = f"Invalid value for field: {'.'.join(location) or 'request'}"
    else:
        message = "Invalid request"
    return _error_response(400, message)


async def handle_service_error(request: Request, exc: OptionDeskError) -> JSONResponse:
    """
    类型化错误 -> HTTP响应

    调用方的错误原样返回；基础设施错误只返回通用信息，详细错误写日志。
    """
    cause = exc.cause if isinstance(exc, OrchestrationError) else exc

    if isinstance(cause, ValidationError):
        return _error_response(400, cause.message)
    if isinstance(cause, NotFoundError):
        return _error_response(404, cause.message)

    logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    if isinstance(cause, PoolError):
        return _error_response(500, POOL_UNAVAILABLE)
    return _error_response(500, GENERIC_SERVER_ERROR)


# ============================================================================
# 应用工厂
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    db_manager: DatabaseManager = app.state.db_manager
    # 数据库不可达时 PoolError 直接抛出，服务不启动
    db_manager.initialize()
    if app.state.config.database.backend == "sql":
        db_manager.create_tables()
    try:
        yield
    finally:
        db_manager.shutdown()


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    创建FastAPI应用

    Args:
        config: 配置对象，默认使用全局配置

    Returns:
        FastAPI实例（连接池在 lifespan 中初始化）
    """
    if config is None:
        config = get_config()

    setup_logger(
        log_file=config.logging.file,
        level=config.logging.level,
    )

    backend = create_backend(config)
    db_manager = DatabaseManager(config.database, session_reset=backend.reset_session)

    app = FastAPI(
        title="optiondesk API",
        description="期权策略交易记录、风险指标计算与审计日志",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.db_manager = db_manager
    app.state.orchestrator = TransactionOrchestrator(db_manager, backend)
    app.state.audit_gateway = AuditGateway(db_manager, backend)

    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(OptionDeskError, handle_service_error)

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check():
        """健康检查"""
        return HealthResponse(
            status="healthy",
            version=__version__,
            pool=db_manager.get_pool_status(),
            timestamp=datetime.now(timezone.utc),
        )

    app.include_router(router)
    return app
