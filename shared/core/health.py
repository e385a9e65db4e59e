"""
Health checks for the service: liveness, readiness, startup and a metrics
snapshot. Response bodies follow the draft "Health Check Response Format for
HTTP APIs" (pass / warn / fail per component).
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from typing import Callable, Dict, Any, Optional
import os
import time
from datetime import datetime, timezone
from enum import Enum
import psutil
import logging

logger = logging.getLogger(__name__)

HealthCheck = Callable[[], Dict[str, Any]]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


class ServiceHealth:
    """
    Health endpoints for one service.

    Service-specific checks are registered as callables returning a component
    dict with at least a ``status`` key. Disk and memory checks are always
    part of readiness.
    """

    def __init__(
        self,
        service_name: str,
        version: str = "1.0.0",
        readiness_checks: Optional[Dict[str, HealthCheck]] = None,
        startup_checks: Optional[Dict[str, HealthCheck]] = None,
    ):
        self.service_name = service_name
        self.version = version
        self.readiness_checks = dict(readiness_checks or {})
        self.startup_checks = dict(startup_checks or {})
        self.start_time = time.time()
        self.checks_performed = 0
        self.last_check_time = None

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        async def health_check() -> Dict[str, Any]:
            """Liveness summary for load balancers"""
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
        async def readiness() -> JSONResponse:
            checks = self.perform_readiness_checks()
            overall_status = self.calculate_overall_status(checks)
            # Degraded dependencies (warn) still serve traffic
            status_code = (
                status.HTTP_503_SERVICE_UNAVAILABLE
                if overall_status == HealthStatus.FAIL
                else status.HTTP_200_OK
            )

            response = {
                "status": overall_status,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "checks": checks,
                "serviceId": self.service_name,
                "description": f"{self.service_name} service",
                "timestamp": _now()
            }

            return JSONResponse(status_code=status_code, content=response)

        @router.get("/health/startup")
        async def startup() -> JSONResponse:
            checks = self._run(self.startup_checks)
            status_val = self.calculate_overall_status(checks)

            if status_val == HealthStatus.FAIL:
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={"status": "starting", "checks": checks}
                )

            return JSONResponse(content={"status": "started", "checks": checks})

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

    def perform_readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        self.last_check_time = time.time()

        checks = self._run(self.readiness_checks)
        checks["storage:disk_space"] = self._check_disk_space()
        checks["system:memory"] = self._check_memory()
        return checks

    def _run(self, registry: Dict[str, HealthCheck]) -> Dict[str, Dict[str, Any]]:
        results = {}
        for name, check in registry.items():
            try:
                result = dict(check())
            except Exception as e:
                logger.error(f"Health check {name} failed: {e}")
                result = {"status": HealthStatus.FAIL, "output": str(e)}
            result.setdefault("time", _now())
            results[name] = result
        return results

    def _check_disk_space(self) -> Dict[str, Any]:
        try:
            disk = psutil.disk_usage('/')
            free_gb = disk.free / (1024 ** 3)

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
        except Exception as e:
            return {
                "status": HealthStatus.WARN,
                "componentType": "system",
                "output": str(e),
                "time": _now()
            }

    def _check_memory(self) -> Dict[str, Any]:
        try:
            memory = psutil.virtual_memory()
            available_mb = memory.available / (1024 ** 2)

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
        except Exception as e:
            return {
                "status": HealthStatus.WARN,
                "componentType": "system",
                "output": str(e),
                "time": _now()
            }

    @staticmethod
    def calculate_overall_status(checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        if not checks:
            return HealthStatus.PASS

        statuses = [check.get("status", HealthStatus.PASS) for check in checks.values()]

        if HealthStatus.FAIL in statuses:
            return HealthStatus.FAIL
        elif HealthStatus.WARN in statuses:
            return HealthStatus.WARN
        else:
            return HealthStatus.PASS
