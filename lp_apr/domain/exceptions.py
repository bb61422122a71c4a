from __future__ import annotations


class DomainError(Exception):
    """Base para erros de dominio."""


class HistoricalDataUnavailableError(DomainError):
    """Nenhum bloco encontrado na janela do timestamp solicitado."""


class IndexerRequestFailedError(DomainError):
    """Falha de transporte ou de parse ao consultar um subgraph."""


class NoIndexerClientForNetworkError(DomainError):
    """Rede sem endpoint de subgraph configurado."""


class UnsupportedChainError(DomainError):
    """Rede sem parametros de deploy para derivar enderecos de pool."""


class InvalidFarmInputError(DomainError):
    """Parametros invalidos para calculo de LP APR."""


class InvalidPairInputError(DomainError):
    """Par de tokens invalido para busca de pools."""


class LpAprUpdateError(DomainError):
    """Falha fatal no pipeline de LP APR."""

    def __init__(self, message: str, *, stage: str, chain_id: int):
        super().__init__(f"[{stage}] chain_id={chain_id}: {message}")
        self.stage = stage
        self.chain_id = chain_id
