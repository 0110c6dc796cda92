#setup: python -m venv .venv
#setup: source .venv/bin/activate   # (windows: .venv\Scripts\activate)
#setup: pip install -U pip -e ".[test]"
#setup: flask --app backend.wsgi run --port 8080 --debug

from backend.app import create_app

app = create_app()


if __name__ == "__main__":
    settings = app.config["SETTINGS"]
    app.run(host=settings.API_HOST, port=settings.API_PORT, debug=settings.is_development)
