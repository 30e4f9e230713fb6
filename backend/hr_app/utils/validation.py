"""
Validação de entrada - converte erros do Pydantic em ValidationError de domínio
"""
from typing import Type, TypeVar, Union
from pydantic import BaseModel, ValidationError as PydanticValidationError

from hr_app.core.errors import ValidationError

S = TypeVar('S', bound=BaseModel)


def parse_input(schema: Type[S], data: Union[S, BaseModel, dict]) -> S:
    """
    Valida dados de entrada contra o schema.

    Aceita instância do próprio schema (retornada como está), outro
    BaseModel (apenas campos enviados) ou dict.

    Raises:
        ValidationError com a lista de campos inválidos

    Usage:
        dados = parse_input(StaffCreate, {"first_name": "Ana", ...})
    """
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)

    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        campos = ", ".join(err["field"] for err in errors)
        raise ValidationError(f"Dados inválidos: {campos}", errors=errors) from e
