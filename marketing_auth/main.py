# marketing_auth/main.py
import uvicorn

from marketing_auth.app import create_app

app = create_app()

if __name__ == "__main__":
    uvicorn.run("marketing_auth.main:app", host="0.0.0.0", port=app.state.settings.PORT)
