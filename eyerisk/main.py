import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .config import AnalysisSettings
from .pipeline import EyeAnalysisPipeline

logging.basicConfig(
    level=os.getenv("EYERISK_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("eyerisk.service")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = AnalysisSettings()
    app.state.pipeline = EyeAnalysisPipeline.from_settings(settings)
    logger.info("Eye analysis pipeline ready (model=%s)", settings.landmarker_model)
    try:
        yield
    finally:
        app.state.pipeline.close()


app = FastAPI(title="EyeRisk Ocular Indicators", version="1.0.0", lifespan=lifespan)


def get_pipeline(request: Request) -> EyeAnalysisPipeline:
    return request.app.state.pipeline


@app.get("/", response_class=JSONResponse)
def root():
    return {"ok": True, "name": "EyeRisk Ocular Indicators", "docs": "/docs"}


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/analyze")
async def analyze(
    image: UploadFile = File(..., description="Still image of an eye or face"),
    pipeline: EyeAnalysisPipeline = Depends(get_pipeline),
):
    data = await image.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")

    # blocking CV work stays off the event loop
    output = await run_in_threadpool(pipeline.analyze_bytes, data)
    logger.info("Analyzed %s: success=%s", image.filename, output.success)
    return output.to_payload()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=os.getenv("EYERISK_HOST", "0.0.0.0"), port=int(os.getenv("EYERISK_PORT", "8000")))
