"""
Pagination Helpers - Paginação e filtros das listagens de funcionários
"""
import operator
from typing import TypeVar, Any, Tuple, List, Iterable, Callable, Optional
from sqlalchemy.orm import Query

T = TypeVar('T')

# operador -> função (coluna, valor) que monta a condição
FILTER_OPERATORS = {
    "eq": operator.eq,
    "gt": operator.gt,
    "lt": operator.lt,
    "gte": operator.ge,
    "lte": operator.le,
    "in": lambda column, values: column.in_(values),
}


def page_count(total: int, page_size: int) -> int:
    """Quantidade de páginas para o total informado (0 quando não há registros)"""
    if page_size <= 0:
        return 0
    return (total + page_size - 1) // page_size


def paginate_query(
    query: Query,
    page: int = 1,
    page_size: int = 20,
    order_by: Any = None
) -> Tuple[List[T], int]:
    """
    Conta o total e busca somente a página pedida.

    order_by aceita uma coluna ou uma tupla de colunas. Em listagens
    paginadas a ordenação deve ser total (terminar em uma coluna única),
    senão a mesma linha pode aparecer em duas páginas.

    Usage:
        items, total = paginate_query(query, 2, 20, order_by=(Staff.last_name, Staff.first_name, Staff.id))
    """
    total = query.count()

    if isinstance(order_by, tuple):
        query = query.order_by(*order_by)
    elif order_by is not None:
        query = query.order_by(order_by)

    offset = (page - 1) * page_size
    return query.offset(offset).limit(page_size).all(), total


def paginate_response(
    query: Query,
    page: int = 1,
    page_size: int = 20,
    order_by: Any = None,
    transform_fn: Optional[Callable[[Any], Any]] = None
) -> dict:
    """
    Página pronta para StaffListResponse: items, total, page, page_size, pages
    """
    items, total = paginate_query(query, page, page_size, order_by)
    if transform_fn is not None:
        items = list(map(transform_fn, items))

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": page_count(total, page_size),
    }


def apply_filters(query: Query, filters: Iterable[tuple]) -> Query:
    """
    Aplica filtros (coluna, operador, valor). Filtro com valor None é ignorado,
    então parâmetros opcionais da listagem podem ser passados direto.

    Raises:
        ValueError para operador desconhecido

    Usage:
        query = apply_filters(query, [
            (Staff.status, "eq", status),
            (Staff.department_id, "in", [1, 2]),
        ])
    """
    for column, op, value in filters:
        build = FILTER_OPERATORS.get(op)
        if build is None:
            raise ValueError(f"Operador de filtro desconhecido: {op}")
        if value is not None:
            query = query.filter(build(column, value))
    return query
