from __future__ import annotations

from portal_unk.errors import AppError, ErrorKind, format_error, is_network_error


def test_format_error_variants() -> None:
    assert format_error(None) == "Erro desconhecido"
    assert format_error("falhou") == "falhou"
    assert format_error(AppError("Pagamento não encontrado", ErrorKind.NOT_FOUND)) == "Pagamento não encontrado"
    assert format_error(ValueError("boom")) == "boom"
    assert format_error({"message": "bad", "code": "23505"}) == "bad - code: 23505"


def test_network_errors_get_friendly_message() -> None:
    assert is_network_error(ConnectionError("Connection refused"))
    assert not is_network_error("validation failed")
    assert format_error(TimeoutError("operation timed out")) == "Erro de rede. Verifique sua conexão."
    assert format_error({"message": "NetworkError when attempting"}) == "Erro de rede. Verifique sua conexão."
