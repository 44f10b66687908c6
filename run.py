"""
Simple script to run the Shuttle SMS application
"""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "shuttle_sms.main:app",
        host="0.0.0.0",
        port=3000,
        reload=True,  # Enable auto-reload in development
        log_level="info"
    )
