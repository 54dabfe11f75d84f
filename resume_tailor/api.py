import argparse
import io
import json
import logging
from pathlib import Path
from typing import Any

import yaml
from flask import Flask, request, send_file
from flask.wrappers import Response
from flask_restx import Api, Resource, fields

from resume_tailor.markdown_docx import (
    DOCX_MIMETYPE,
    ConfigLoader,
    DocumentExportError,
    Identity,
    export_docx,
)

logging.basicConfig(
    level=logging.INFO,
    datefmt="%Y-%m-%d %H:%M:%S",
    format="%(asctime)s.%(msecs)d %(levelname)-8s [%(processName)s] [%(threadName)s] %(filename)s:%(funcName)s:%(lineno)d --- %(message)s",
)

SCRIPT_DIR = Path(__file__).parent
API_CONFIG_FILE = Path("api_config.yaml")
DEFAULT_DOWNLOAD_NAME = "tailored-resume.docx"
DEFAULT_MIN_MARKDOWN_LENGTH = 10


class ApiConfig:
    """Application configuration class"""

    def __init__(self, api_config_file: Path):
        """Initialize the application configuration

        Args:
            api_config_file (Path): Path to the API configuration file
        """
        self._config_file = api_config_file
        self._config_file_realpath = api_config_file.absolute().resolve()
        self._config = self.load_app_config()

        self._server = self._config.get("server", {})

    @property
    def config_file(self) -> Path:
        return Path(self._config_file)

    @property
    def config(self) -> dict:
        """Get the entire configuration dictionary

        Returns:
            dict: Complete configuration dictionary
        """
        return self._config

    @property
    def server(self) -> dict:
        """Get the server settings (host and port)

        Returns:
            dict: Server configuration
        """
        return self._server

    @property
    def mimetypes(self) -> dict[str, list[str]]:
        return self._config.get("mimetypes", {})

    @property
    def cors(self) -> dict:
        return self._config.get("cors", {})

    @property
    def logging(self) -> dict:
        return self._config.get("logging", {})

    @property
    def input(self) -> dict:
        return self._config.get("input", {})

    @property
    def output(self) -> dict:
        return self._config.get("output", {})

    def load_app_config(self) -> dict[str, Any]:
        """Load API configuration from api_config.yaml

        Returns:
            dict: Application configuration, empty when the file is missing
                  or unreadable
        """
        if not self._config_file_realpath.exists():
            logging.warning(
                "%s not found, using defaults", self._config_file_realpath
            )
            return {}

        try:
            with open(
                self._config_file_realpath, "r", encoding="utf-8", errors="replace"
            ) as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logging.error("Error loading app config: %s", e)
            return {}


class BaseApi:
    """Base class for Flask application"""

    def __init__(self, api_config_file: Path):
        """Initialize the API Base

        Args:
            api_config_file (Path): Path to the API configuration file
        """
        api_config = ApiConfig(api_config_file)

        app = Flask(__name__.split(".")[0])

        self._app = app
        self._api_config = api_config
        self._api = Api(
            app,
            version="1.0",
            title="Tailored Resume Export API",
            description="API for exporting tailored markdown resumes as Word documents",
            doc="/swagger",
        )
        self._ns = self._api.namespace(
            "api", description="Resume export operations", path="/api"
        )

        self._host = self._api_config.server.get("host", "127.0.0.1")
        self._port = self._api_config.server.get("port", 3001)

        self._configure_logging()
        self._configure_cors()

        self._app.logger.debug(f"API host: {self._host}")
        self._app.logger.debug(f"API port: {self._port}")
        self._app.logger.debug(f"API mimetypes: {self._api_config.mimetypes}")
        self._app.logger.debug(f"API output: {self._api_config.output}")

    @property
    def app(self) -> Flask:
        return self._app

    @property
    def api(self) -> Api:
        return self._api

    @property
    def api_config(self) -> ApiConfig:
        return self._api_config

    @property
    def ns(self):
        return self._ns

    def run(self, program_description: str = None, epilog_text: str = None) -> None:
        """Run the Flask application

        Args:
            program_description (str): Description of the program
            epilog_text (str): Epilog text for the help message
        """
        parser = argparse.ArgumentParser(
            description=program_description,
            epilog=epilog_text,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        parser.add_argument(
            "--host", dest="host", default=self._host, help="Interface to bind"
        )
        parser.add_argument(
            "--port", dest="port", type=int, default=self._port, help="Port to bind"
        )
        parser.add_argument(
            "--debug",
            action="store_true",
            dest="debug",
            help="Enable debug mode for the Flask application",
            default=False,
        )

        args = parser.parse_args()

        self._app.run(host=args.host, port=args.port, debug=args.debug)

    def _configure_logging(self) -> None:
        """Configure logging for the API"""
        log_level_name = str(self._api_config.logging.get("level", "INFO")).upper()
        log_level = getattr(logging, log_level_name, logging.INFO)
        self._app.logger.setLevel(log_level)
        logging.getLogger("resume_tailor").setLevel(log_level)
        self._app.logger.info(f"Logging level set to {log_level_name}")

    def _configure_cors(self) -> None:
        """Configure CORS for the API"""
        cors_config = self._api_config.cors
        if not cors_config.get("enabled", False):
            self._app.logger.info("CORS disabled")
            return

        from flask_cors import CORS

        self._app.logger.info(f"Configuring CORS with: {cors_config}")
        CORS(
            self._app,
            resources={
                r"/api/*": {
                    "origins": cors_config.get("origins", "*"),
                    "expose_headers": cors_config.get(
                        "expose_headers", ["Content-Disposition"]
                    ),
                }
            },
            supports_credentials=cors_config.get("supports_credentials", False),
        )


class App(BaseApi):
    """API class for handling resume export"""

    def __init__(self, api_config_file: Path):
        super().__init__(api_config_file)

        self._export_model = self._api.model(
            "ExportRequest",
            {
                "markdown": fields.String(
                    required=True, description="Tailored resume markdown"
                ),
                "firstName": fields.String(description="First name for the header"),
                "lastName": fields.String(description="Last name for the header"),
                "location": fields.String(description="City, state or region"),
                "phone": fields.String(description="Phone number"),
                "email": fields.String(description="Email address"),
                "linkedIn": fields.String(description="LinkedIn handle or URL"),
                "config_options": fields.Raw(
                    description="Stylesheet overrides merged over resume_config.yaml"
                ),
            },
        )
        self._response_model = self._api.model(
            "Response",
            {
                "success": fields.Boolean(
                    description="Whether the operation was successful"
                ),
                "message": fields.String(description="Status message"),
            },
        )

    @property
    def export_model(self):
        return self._export_model

    @property
    def response_model(self):
        return self._response_model

    def error_response(
        self, code: int, error: object, message: str = None
    ) -> tuple[dict[str, Any], int]:
        """Return a JSON error response

        Args:
            code (int): HTTP status code
            error (object): The error or error text
            message (str): Optional message prefix

        Returns:
            tuple: JSON response with error message and status code
        """
        msg = f"{message}: {str(error)}" if message else str(error)
        self._app.logger.error(msg)
        return {
            "success": False,
            "message": msg,
        }, code

    def export(self, payload: Any) -> Response | tuple[dict[str, Any], int]:
        """Convert a markdown resume and identity into a DOCX download

        Args:
            payload: Decoded JSON request body

        Returns:
            Response: Flask response with the generated file, or a JSON error
        """
        if not isinstance(payload, dict):
            return self.error_response(400, "Request body must be a JSON object.")

        markdown = payload.get("markdown")
        min_length = self._api_config.input.get(
            "min_markdown_length", DEFAULT_MIN_MARKDOWN_LENGTH
        )
        if not isinstance(markdown, str) or len(markdown.strip()) < min_length:
            return self.error_response(400, "Missing markdown content.")

        config_loader = ConfigLoader()
        config_options = payload.get("config_options")
        if isinstance(config_options, str):
            try:
                config_options = json.loads(config_options)
            except json.JSONDecodeError as e:
                return self.error_response(
                    400, e, "Invalid JSON in config_options parameter"
                )
        if config_options and not isinstance(config_options, dict):
            return self.error_response(400, "config_options must be an object.")

        try:
            if config_options:
                self._app.logger.info(
                    f"Merging custom configuration: {config_options}"
                )
                config_loader.merge(config_options)
            theme = config_loader.theme()
        except (TypeError, ValueError) as e:
            return self.error_response(400, e, "Invalid config_options")

        identity = Identity.from_mapping(payload)
        self._app.logger.info(
            f"Exporting resume ({len(markdown)} chars) for '{identity.name_line or ''}'"
        )

        try:
            data = export_docx(markdown, identity, theme)
        except DocumentExportError as e:
            self._app.logger.exception(e)
            return self.error_response(500, "Failed to generate DOCX.")

        download_name = self._api_config.output.get(
            "download_name", DEFAULT_DOWNLOAD_NAME
        )
        mimetype = self._api_config.mimetypes.get("docx", [DOCX_MIMETYPE])[0]

        response = send_file(
            io.BytesIO(data),
            mimetype=mimetype,
            as_attachment=True,
            download_name=download_name,
        )
        response.headers["Content-Disposition"] = (
            f'attachment; filename="{download_name}"'
        )
        self._app.logger.info(f"Successfully created {download_name}")

        return response


app = App(SCRIPT_DIR / API_CONFIG_FILE)


@app.ns.route("/export/docx", methods=["POST"])
class ExportDocxResource(Resource):
    @app.ns.doc("export_docx", consumes=["application/json"])
    @app.ns.expect(app.export_model)
    @app.ns.response(200, "Success - Returns DOCX file download")
    @app.ns.response(
        400,
        "Bad Request",
        app.response_model,
        produces=app.api_config.mimetypes.get("error"),
    )
    @app.ns.response(
        500,
        "Server Error",
        app.response_model,
        produces=app.api_config.mimetypes.get("error"),
    )
    def post(self) -> Response:
        """Export tailored resume markdown as a Word document

        The header is built from the optional identity fields; the markdown
        body is converted into headings, bullets, education entries and a
        skills grid.

        Returns:
            Response: Flask response with the generated DOCX file
        """
        return app.export(request.get_json(silent=True))


@app.ns.route("/health", methods=["GET"])
class HealthResource(Resource):
    @app.ns.marshal_with(app.response_model)
    def get(self) -> dict:
        """Report that the service is up"""
        return {"success": True, "message": "ok"}


# Export the Flask application object for WSGI servers and serverless-wsgi
application = app.app


def main() -> None:
    program_description = """
Tailored Resume Export API
--------------------------------
Converts tailored markdown resumes into styled Word documents.
"""

    epilog_text = """
Example usage:
# Start the API server
resume-tailor-api --port 3001 --debug

# Export a markdown resume
curl -X POST "http://localhost:3001/api/export/docx" \\
-H "Content-Type: application/json" \\
-d '{"markdown": "## EXPERIENCE\\n- Led a team", "firstName": "Ana"}' \\
-o tailored-resume.docx
"""

    app.run(program_description, epilog_text)


if __name__ == "__main__":
    main()
