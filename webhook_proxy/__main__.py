"""
Run the proxy with uvicorn: ``python -m webhook_proxy``.
"""
import uvicorn

from webhook_proxy.vars import HOST, PORT, RELOAD

if __name__ == "__main__":
    uvicorn.run("webhook_proxy.server:app", host=HOST, port=PORT, reload=RELOAD)
