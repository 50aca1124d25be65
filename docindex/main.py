from docindex.core.config import IndexConfig, configure_logging

if __name__ == "__main__":
    import uvicorn

    cfg = IndexConfig.from_env()
    configure_logging(cfg.log_level)

    from docindex.api.main import create_app

    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port)
