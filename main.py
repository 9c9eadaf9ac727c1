import logging

from fastapi import FastAPI

from pitchfund import config
from pitchfund.ai import router as ai_router
from pitchfund.auth import router as auth_router
from pitchfund.extract import router as extract_router
from pitchfund.investments import router as investments_router
from pitchfund.seo import router as seo_router
from pitchfund.subscribe import router as subscribe_router
from pitchfund.vcs import router as vcs_router
from pitchfund.vectorize import router as vectorize_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(levelname)s - %(message)s'
)

app = FastAPI(title="The Pitch Fund")

@app.get("/")
def health():
    return {"status": "ok"}

# Admin wizard + public portfolio under /api/*
app.include_router(investments_router, prefix="/api")
app.include_router(subscribe_router, prefix="/api")
app.include_router(extract_router, prefix="/api")
app.include_router(vcs_router, prefix="/api")
app.include_router(vectorize_router, prefix="/api")
app.include_router(ai_router, prefix="/api/ai")

app.include_router(auth_router, prefix="/auth")
app.include_router(seo_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
