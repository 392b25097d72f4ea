import os

# Defaults globais (podem ser sobrescritos por variável de ambiente ou flag)
DEFAULT_GOTIFY_ENDPOINT = "http://127.0.0.1:80/message"
DEFAULT_BIND_ADDRESS = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_WEBHOOK_PATH = "/gotify_webhook"
DEFAULT_TIMEOUT = "5s"

DEFAULT_TITLE_ANNOTATION = "summary"
DEFAULT_MESSAGE_ANNOTATION = "description"
DEFAULT_PRIORITY_ANNOTATION = "priority"
DEFAULT_PRIORITY = 5

DEFAULT_METRICS_NAMESPACE = "alertmanager_gotify_bridge"
DEFAULT_METRICS_PATH = "/metrics"

VERSION = os.getenv("BRIDGE_VERSION", "testing")
SERVICE_NAME = "alertmanager-gotify-bridge"

GOTIFY_MESSAGE_SUFFIX = "/message"
GOTIFY_HEALTH_SUFFIX = "/health"
GOTIFY_TOKEN_HEADER = "X-Gotify-Key"

# Notificação de diagnóstico (modo dispatch_errors)
ERROR_NOTIFICATION_TITLE = "Alertmanager-Gotify-Bridge Error"
ERROR_NOTIFICATION_TEMPLATE = (
    "    Error: {error}\n\n"
    "Also check Alertmanager, maybe an alert was raised!\n\n"
    "Incoming request:\n{payload}"
)

# Marcadores do modo extended_details por status do alerta
STATUS_MARKERS = {
    "resolved": {
        "message": "<font style='color: #00b339;' data-mx-color='#00b339'>RESOLVED</font><br/> ",
        "title": "[RES] ",
    },
    "firing": {
        "message": "<font style='color: #b31e00;' data-mx-color='#b31e00'>FIRING</font><br/> ",
        "title": "[FIR] ",
    },
}
SOURCE_LINK_TEMPLATE = "<br/><a href='{url}'>go to source</a>"
STARTS_AT_TEMPLATE = (
    "<br/><br/><i><font style='color: #999999;' data-mx-color='#999999'>"
    " alert created at: {starts_at}</font></i><br/>"
)
STARTS_AT_DISPLAY_LENGTH = 19

# Funções de template do Prometheus que dependem de um servidor/consulta e não existem aqui.
# A ordem define qual nome é reportado quando mais de um aparece.
UNSUPPORTED_TEMPLATE_FUNCTIONS = (
    "query",
    "first",
    "label",
    "value",
    "strvalue",
    "safeHtml",
    "sortByLabel",
)

METRIC_COUNTERS = (
    "requests_received",
    "requests_invalid",
    "alerts_received",
    "alerts_invalid",
    "alerts_processed",
    "alerts_failed",
)
