import logging

from flask import Flask

from config import Config, ProviderConfig
from routes import register_blueprints
from services.onboarding import build_orchestrator


def create_app(test_config=None, provider_config=None, http=None):
    """
    Application factory.

    Args:
        test_config: Overrides applied on top of config.Config
        provider_config: ProviderConfig; read from the environment when omitted
        http: Outbound transport with requests' interface, requests by default
    """
    app = Flask(__name__)
    app.config.from_object('config.Config')
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )

    provider_config = provider_config or ProviderConfig.from_env()
    app.extensions['provider_config'] = provider_config
    app.extensions['http'] = http
    app.extensions['onboarding'] = build_orchestrator(app.config, provider_config, http=http)

    register_blueprints(app)

    return app


app = create_app()

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=Config.PORT, debug=Config.FLASK_ENV == 'development')
