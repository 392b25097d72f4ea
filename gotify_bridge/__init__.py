"""Bridge Alertmanager -> Gotify.

Este pacote contém:
- constants: defaults, textos fixos e nomes das métricas
- config: flags/variáveis de ambiente e a configuração imutável do processo
- models: formato de entrada (Alertmanager) e saída (Gotify)
- templating / template_functions: renderização das annotations
- transformer: conversão de um alerta em notificação
- dispatcher: processamento do lote de alertas de uma requisição
- services: integração com o Gotify (envio e health check)
- metrics: contadores e collector do Prometheus
- controller: criação do Flask app e endpoints
"""
