import logging

from django.apps import apps
from django.db import connection
from django.http import JsonResponse

from notes.vector_service import vector_service

logger = logging.getLogger(__name__)


def health_check(request):
    """Health check endpoint for load balancers and monitoring"""
    status = {"status": "healthy", "services": {}}
    logger.info("Health check started")

    # Check database
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        status["services"]["database"] = "healthy"
    except Exception as e:
        status["services"]["database"] = f"unhealthy: {str(e)}"
        status["status"] = "unhealthy"

    # Check Qdrant
    try:
        if vector_service.health_check():
            status["services"]["qdrant"] = "healthy"
        else:
            status["services"]["qdrant"] = "unhealthy: collection check failed"
            status["status"] = "unhealthy"
    except Exception as e:
        logger.error(f"Qdrant error: {type(e).__name__}: {e}")
        status["services"]["qdrant"] = f"unhealthy: {str(e)}"
        status["status"] = "unhealthy"

    # Embedding workers are not critical for serving reads
    pool = apps.get_app_config("notes").worker_pool
    if pool is not None:
        stats = pool.stats()
        status["services"]["workers"] = "running" if stats["running"] else "stopped"

    status_code = 200 if status["status"] == "healthy" else 503
    logger.info(f"Health check complete: {status}")
    return JsonResponse(status, status=status_code)
