"""
Health and metrics endpoints in the "Health Check Response Format for HTTP
APIs" draft shape, suitable for Kubernetes liveness/readiness/startup probes.

Readiness reports the database, the external providers the service talks
to (configured or not), and host disk/memory headroom.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from typing import Callable, Dict, Any, Optional
import os
import time
from datetime import datetime
from enum import Enum
import psutil
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


class ServiceHealth:
    """
    Builds the health router for one service.

    Args:
        service_name: Reported as ``serviceId``
        version: Reported service version
        engine: SQLAlchemy engine checked for connectivity and migrations
        providers: name -> zero-arg callable returning whether that provider is configured
    """

    def __init__(
        self,
        service_name: str,
        version: str = "1.0.0",
        engine: Optional[Engine] = None,
        providers: Optional[Dict[str, Callable[[], bool]]] = None,
    ):
        self.service_name = service_name
        self.version = version
        self.engine = engine
        self.providers = providers or {}
        self.start_time = time.time()
        self.checks_performed = 0
        self.last_check_time = None

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        async def health_check() -> Dict[str, Any]:
            """Lightweight liveness check for load balancers"""
            return {
                "status": HealthStatus.PASS,
                "service": self.service_name,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "timestamp": _now()
            }

        @router.get("/health/live", status_code=status.HTTP_200_OK)
        async def liveness() -> Dict[str, Any]:
            return {"status": "alive"}

        @router.get("/health/ready")
        def readiness() -> JSONResponse:
            """Dependency checks; only a failing check makes the service unready."""
            checks = self.readiness_checks()
            overall = self._calculate_overall_status(checks)
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE if overall == HealthStatus.FAIL else status.HTTP_200_OK
            return JSONResponse(
                status_code=status_code,
                content={
                    "status": overall.value,
                    "version": self.version,
                    "releaseId": os.getenv("RELEASE_ID", "unknown"),
                    "checks": checks,
                    "serviceId": self.service_name,
                    "description": f"{self.service_name} admin service",
                    "timestamp": _now()
                },
            )

        @router.get("/health/startup")
        def startup():
            checks = {"database:migrations": self._check_migrations()}
            if self._calculate_overall_status(checks) == HealthStatus.FAIL:
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={"status": "starting", "checks": checks}
                )
            return {"status": "started", "checks": checks}

        @router.get("/metrics")
        async def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            memory = process.memory_info()
            return {
                "service": self.service_name,
                "version": self.version,
                "uptime_seconds": time.time() - self.start_time,
                "checks_performed": self.checks_performed,
                "timestamp": _now(),
                "system": {
                    "memory_rss_bytes": memory.rss,
                    "memory_vms_bytes": memory.vms,
                    "cpu_percent": process.cpu_percent(),
                    "num_threads": process.num_threads()
                }
            }

        return router

    def readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        self.last_check_time = time.time()

        checks = {"database:connectivity": self._check_database()}
        for name, is_configured in self.providers.items():
            checks[f"provider:{name}"] = self._check_provider(name, is_configured)
        checks["storage:disk_space"] = self._check_disk_space()
        checks["system:memory"] = self._check_memory()
        return checks

    def _check_database(self) -> Dict[str, Any]:
        if self.engine is None:
            return {"status": HealthStatus.WARN, "componentType": "datastore", "output": "No engine", "time": _now()}
        try:
            start_time = time.time()
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            return {
                "status": HealthStatus.PASS,
                "componentType": "datastore",
                "observedValue": f"{(time.time() - start_time) * 1000:.2f}",
                "observedUnit": "ms",
                "time": _now()
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": HealthStatus.FAIL, "componentType": "datastore", "output": str(e), "time": _now()}

    def _check_provider(self, name: str, is_configured: Callable[[], bool]) -> Dict[str, Any]:
        # An unconfigured provider degrades one feature, not the whole service
        configured = bool(is_configured())
        check = {
            "status": HealthStatus.PASS if configured else HealthStatus.WARN,
            "componentType": "component",
            "time": _now()
        }
        if not configured:
            check["output"] = f"{name} is not configured"
        return check

    def _check_migrations(self) -> Dict[str, Any]:
        if self.engine is None:
            return {"status": HealthStatus.WARN, "componentType": "datastore", "output": "No engine", "time": _now()}
        try:
            tables = set(inspect(self.engine).get_table_names())
        except Exception as e:
            return {"status": HealthStatus.FAIL, "componentType": "datastore", "output": str(e), "time": _now()}
        if "alembic_version" in tables:
            return {"status": HealthStatus.PASS, "componentType": "datastore", "time": _now()}
        return {
            "status": HealthStatus.WARN,
            "componentType": "datastore",
            "output": "Migrations table not found",
            "time": _now()
        }

    def _check_disk_space(self) -> Dict[str, Any]:
        try:
            free_gb = psutil.disk_usage('/').free / (1024 ** 3)
        except OSError as e:
            return {"status": HealthStatus.WARN, "componentType": "system", "output": str(e), "time": _now()}
        if free_gb < 1:
            status_val = HealthStatus.FAIL
        elif free_gb < 5:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {
            "status": status_val,
            "componentType": "system",
            "observedValue": f"{free_gb:.2f}",
            "observedUnit": "GB",
            "time": _now()
        }

    def _check_memory(self) -> Dict[str, Any]:
        available_mb = psutil.virtual_memory().available / (1024 ** 2)
        if available_mb < 100:
            status_val = HealthStatus.FAIL
        elif available_mb < 500:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {
            "status": status_val,
            "componentType": "system",
            "observedValue": f"{available_mb:.2f}",
            "observedUnit": "MB",
            "time": _now()
        }

    @staticmethod
    def _calculate_overall_status(checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        statuses = [check.get("status", HealthStatus.PASS) for check in checks.values()]
        if HealthStatus.FAIL in statuses:
            return HealthStatus.FAIL
        if HealthStatus.WARN in statuses:
            return HealthStatus.WARN
        return HealthStatus.PASS
