"""
Tests for the AWS Lambda entry point.
"""

import json

import serverless_handler


class TestHandler:
    def test_delegates_to_serverless_wsgi(self, monkeypatch):
        calls = []

        def fake_handle_request(app, event, context):
            calls.append((app, event, context))
            return {"statusCode": 200, "body": "{}"}

        monkeypatch.setattr(serverless_handler, "handle_request", fake_handle_request)
        event = {"httpMethod": "GET", "path": "/api/health"}

        response = serverless_handler.handler(event, None)

        assert response["statusCode"] == 200
        from resume_tailor.api import application

        assert calls == [(application, event, None)]

    def test_errors_become_json_500(self, monkeypatch):
        def failing_handle_request(app, event, context):
            raise RuntimeError("bad event")

        monkeypatch.setattr(serverless_handler, "handle_request", failing_handle_request)

        response = serverless_handler.handler({}, None)

        assert response["statusCode"] == 500
        assert response["headers"]["Content-Type"] == "application/json"
        assert json.loads(response["body"]) == {"success": False, "message": "bad event"}
