class AnalyzerError(Exception):
    """Raíz de los errores del analizador."""


class ProviderUnavailable(AnalyzerError):
    def __init__(self, chain_id: int | None = None, message: str | None = None):
        self.chain_id = chain_id
        if message is None:
            message = (f"Blockchain provider not available for chain {chain_id} - check ALCHEMY_API_KEY"
                       if chain_id is not None else
                       "Blockchain service unavailable. Add ALCHEMY_API_KEY to .env")
        super().__init__(message)


class GatewayError(AnalyzerError):
    def __init__(self, message: str, chain_id: int | None = None, method: str | None = None):
        super().__init__(message)
        self.chain_id = chain_id
        self.method = method


class JsonRpcError(AnalyzerError):
    def __init__(self, code: int | None, message: str):
        super().__init__(f"[{code}] {message}")
        self.code = code


class ClassificationError(AnalyzerError):
    pass


class PaymentNotConfirmed(AnalyzerError):
    def __init__(self, tx_hash: str, message: str = "Transaction failed or not found on blockchain"):
        super().__init__(message)
        self.tx_hash = tx_hash


class AnalysisTimeout(AnalyzerError):
    def __init__(self, request_id: str, attempts: int):
        super().__init__(f"Analysis taking longer than expected ({attempts} attempts)")
        self.request_id = request_id
        self.attempts = attempts
