import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = None) -> logging.Logger:
    """
    Configura o logger raiz do pacote hr_app
    Instala um único StreamHandler (chamadas repetidas não duplicam saída)
    """
    from hr_app.config import settings

    logger = logging.getLogger("hr_app")
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
