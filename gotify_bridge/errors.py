class BridgeError(Exception):
    """Base de todas as falhas conhecidas da bridge."""


class ConfigError(BridgeError):
    """Configuração inválida detectada na inicialização (encerra o processo)."""


class PayloadError(BridgeError, ValueError):
    """Corpo da requisição não corresponde ao formato de notificação do Alertmanager."""


class MissingAnnotationError(BridgeError):
    def __init__(self, key):
        self.key = key
        super().__init__(f"missing annotation: {key}")


class TemplateRenderError(BridgeError):
    def __init__(self, detail):
        self.detail = detail
        super().__init__(f"error in Template: {detail}")


class UnsupportedFunctionError(TemplateRenderError):
    def __init__(self, function):
        self.function = function
        super().__init__(f"function not supported by the bridge: {function}")
