# app/routes/health.py
"""
Health check endpoints with job and account-store status.
"""

import time

from fastapi import APIRouter, Request

from app.services.account_store import AccountStoreError

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "email-marketing-backoffice"}


@router.get("/readyz")
async def readyz(request: Request):
    """
    Readiness check: accounts file readable, job registries up.
    """
    checks = {}
    overall_ok = True

    # 1) Account store
    t0 = time.time()
    try:
        accounts = await request.app.state.account_store.list_accounts()
        checks["account_store"] = {
            "ok": True,
            "accounts": len(accounts),
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
    except AccountStoreError as e:
        checks["account_store"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
        overall_ok = False

    # 2) Jobs
    registry = request.app.state.import_registry
    checks["imports"] = {
        "ok": True,
        "active_jobs": len(registry.list_jobs(active_only=True)),
        "total_jobs": len(registry.list_jobs()),
    }
    checks["deletions"] = {
        "ok": True,
        "tracked_jobs": len(request.app.state.deletion_runner.store),
    }

    return {"overall_ok": overall_ok, "checks": checks}
