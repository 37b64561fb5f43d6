"""Main FastAPI application"""
from fastapi import FastAPI
from app.config import get_settings
from app.middleware.cors import setup_cors
from app.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from app.routers import forms
import logging

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Form Gateway",
    description="Contact form submission gateway (reCAPTCHA + Google Sheets)",
    version="1.0.0",
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None
)

# Setup CORS
setup_cors(app, settings)

# Add error handling middleware
app.add_middleware(ErrorHandlerMiddleware)
register_exception_handlers(app)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "form-gateway"}


app.include_router(forms.router, prefix="/api", tags=["Forms"])

logger.info(
    f"Form gateway ready (schema={settings.form_schema}, origin={settings.normalized_origin})"
)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
