import json
import logging

from serverless_wsgi import handle_request

logger = logging.getLogger(__name__)


def handler(event, context):
    """WSGI handler for API Gateway requests

    DOCX downloads come back from serverless-wsgi base64-encoded with
    ``isBase64Encoded`` set, which API Gateway needs for binary media types.
    """
    try:
        from resume_tailor.api import application

        response = handle_request(application, event, context)
        logger.info(
            "Handled %s %s -> %s",
            event.get("httpMethod"),
            event.get("path"),
            response.get("statusCode"),
        )
        return response
    except Exception as e:
        logger.exception("Unhandled error in serverless handler")
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"success": False, "message": str(e)}),
        }
