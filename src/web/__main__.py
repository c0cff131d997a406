from src.web.server import run_server

# python -m src.web
if __name__ == "__main__":
    run_server()
