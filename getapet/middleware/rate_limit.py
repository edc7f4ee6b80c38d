"""
Rate limiting por endpoint usando slowapi
"""
from fastapi import Request, HTTPException
from limits import parse
from slowapi.util import get_remote_address

def apply_rate_limit(request: Request, limit: str):
    """
    Aplica rate limiting a um endpoint específico.
    Uso: apply_rate_limit(request, "5/minute")

    Sem limiter configurado (por exemplo, nos testes) a função não faz nada.
    """
    limiter = getattr(request.app.state, "limiter", None)
    if limiter is None:
        return

    key = get_remote_address(request)

    # hit() incrementa o contador e devolve False quando o limite estoura
    if not limiter.limiter.hit(parse(limit), request.url.path, key):
        raise HTTPException(
            status_code=429,
            detail=f"Muitas requisições. Limite: {limit}. Tente novamente mais tarde."
        )
