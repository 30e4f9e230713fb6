from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from hr_app.config import settings

# Execution option com o modo do BEGIN no SQLite (ignorada nos outros bancos)
SQLITE_BEGIN_OPTION = "sqlite_begin"
SQLITE_BEGIN_MODES = ("DEFERRED", "IMMEDIATE", "EXCLUSIVE")


def _enable_sqlite_transactions(engine: Engine) -> None:
    """
    SQLite: o driver pysqlite não emite BEGIN antes de SELECT nem de SAVEPOINT.
    Desliga o controle do driver e emite o BEGIN no início de cada transação.

    Padrão BEGIN IMMEDIATE: trava o banco para escrita até o commit/rollback
    (equivalente ao lock de linha do PostgreSQL para o contador de sequência).
    Sessões somente leitura pedem BEGIN DEFERRED pela execution option
    SQLITE_BEGIN_OPTION e não esperam pelos cadastros em andamento.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "IMMEDIATE")
        if mode not in SQLITE_BEGIN_MODES:
            raise ValueError(f"Modo de BEGIN inválido: {mode}")
        conn.exec_driver_sql(f"BEGIN {mode}")


def make_engine(url: str = None, echo: bool = None) -> Engine:
    """
    Cria engine do SQLAlchemy para qualquer URL

    PostgreSQL em produção; SQLite nos testes (com check_same_thread=False
    para permitir uma sessão por thread e timeout de lock de escrita)
    """
    url = url or settings.DATABASE_URL
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}

    engine = create_engine(
        url,
        pool_pre_ping=True,  # Verifica conexões antes de usar
        echo=settings.sql_echo if echo is None else echo,
        connect_args=connect_args
    )

    if engine.dialect.name == "sqlite":
        _enable_sqlite_transactions(engine)

    return engine


def make_session_factory(bind: Engine) -> sessionmaker:
    """
    Session factory com commit explícito

    expire_on_commit=False: o registro retornado pelo serviço continua
    legível depois que a sessão é fechada
    """
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


# Engine do SQLAlchemy
engine = make_engine()

# Session factory
SessionLocal = make_session_factory(engine)

# Base para os models
Base = declarative_base()


def init_db(bind: Engine = None) -> None:
    """
    Cria todas as tabelas no banco
    Importa os models para registrá-los no metadata
    """
    import hr_app.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    Dependency para obter sessão do banco de dados
    Sempre fecha a sessão ao final
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
