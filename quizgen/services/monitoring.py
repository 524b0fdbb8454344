"""
Health checks and monitoring with Prometheus metrics
"""
import time

import psutil
import structlog
from fastapi.responses import Response
from prometheus_client import Counter, Histogram, CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from quizgen.db import engine
from quizgen.models import PracticeSession, QuestionSet

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
AI_GENERATION_REQUESTS = Counter('ai_generation_requests_total', 'Total AI generation requests', ['type', 'status'])
REPAIRED_QUESTIONS = Counter('repaired_questions_total', 'Generated questions corrected by the repairer', ['type', 'rule'])


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_database(self) -> dict:
        """Check database connectivity and health"""
        try:
            with Session(engine) as session:
                question_sets = session.exec(select(func.count()).select_from(QuestionSet)).one()
            return {
                "status": "healthy",
                "message": "Database connection successful",
                "question_sets_count": question_sets,
            }
        except SQLAlchemyError as e:
            logger.error("database_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "message": f"Database connection failed: {str(e)}"
            }

    def get_system_metrics(self) -> dict:
        """Get system resource metrics"""
        memory = psutil.virtual_memory()
        return {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": memory.percent,
            "memory_available_gb": round(memory.available / (1024**3), 2),
            "uptime_seconds": time.time() - self.start_time
        }

    def get_application_metrics(self) -> dict:
        try:
            with Session(engine) as session:
                open_sessions = session.exec(
                    select(func.count()).select_from(PracticeSession).where(PracticeSession.is_completed == False)  # noqa: E712
                ).one()
            return {"open_practice_sessions": open_sessions}
        except SQLAlchemyError as e:
            logger.error("application_metrics_failed", error=str(e))
            return {"error": str(e)}

    def get_health_status(self) -> dict:
        """Get overall health status"""
        checks = {"database": self.check_database()}

        unhealthy_checks = [name for name, check in checks.items() if check["status"] == "unhealthy"]
        overall_status = "healthy" if not unhealthy_checks else "unhealthy"

        return {
            "status": overall_status,
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": self.get_system_metrics(),
            "application_metrics": self.get_application_metrics(),
            "unhealthy_components": unhealthy_checks
        }


# Global health checker instance
health_checker = HealthChecker()


def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
