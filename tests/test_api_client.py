#!/usr/bin/env python3
"""
Tests for the quotation backend client.
"""

import json
import unittest
from unittest.mock import Mock

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import requests

from quotation_parser.api_client import QuotationAPIClient, is_quota_error
from quotation_parser.config import Settings
from quotation_parser.exceptions import APIError
from quotation_parser.models import ProcessingOutcome, QuotationRecord


def make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    if json_data is not None:
        response.content = json.dumps(json_data).encode("utf-8")
        response.json.return_value = json_data
    else:
        response.content = text.encode("utf-8")
        response.json.side_effect = ValueError("No JSON object could be decoded")
    return response


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestQuotationAPIClient(unittest.TestCase):
    """Test cases for QuotationAPIClient."""

    def setUp(self):
        self.session = Mock()
        self.session.headers = {}
        self.client = QuotationAPIClient("http://api.test/", token="secret", timeout=5,
                                         session=self.session)

    def test_headers(self):
        self.assertEqual(self.session.headers["Authorization"], "Bearer secret")
        self.assertEqual(self.session.headers["Content-Type"], "application/json")

    def test_from_settings(self):
        client = QuotationAPIClient.from_settings(Settings(api_base_url="http://x.test", api_timeout=12))
        self.assertEqual(client.base_url, "http://x.test")
        self.assertEqual(client.timeout, 12)
        self.assertNotIn("Authorization", client.session.headers)

    def test_query(self):
        self.session.request.return_value = make_response(json_data={"response": "Hola"})

        answer = self.client.query("malla sombra", messages=[{"role": "user", "content": "hola"}],
                                   customer_name="Rancho El Sauz")

        self.assertEqual(answer, "Hola")
        self.session.request.assert_called_once_with(
            "POST", "http://api.test/query", timeout=5,
            json={
                "query": "malla sombra",
                "messages": [{"role": "user", "content": "hola"}],
                "customer_name": "Rancho El Sauz",
            },
        )

    def test_query_without_response_field(self):
        self.session.request.return_value = make_response(json_data={"answer": "Hola"})
        with self.assertRaises(APIError):
            self.client.query("malla sombra")

    def test_http_error(self):
        self.session.request.return_value = make_response(500, json_data={"detail": "Internal error"})

        with self.assertRaises(APIError) as ctx:
            self.client.list_history()

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(str(ctx.exception), "Internal error")
        self.assertFalse(ctx.exception.is_quota_error)

    def test_quota_error(self):
        self.session.request.return_value = make_response(429, text="Too Many Requests")

        with self.assertRaises(APIError) as ctx:
            self.client.query("malla sombra")

        self.assertTrue(ctx.exception.is_quota_error)

    def test_connection_error(self):
        self.session.request.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(APIError) as ctx:
            self.client.get_history(1)

        self.assertIsNone(ctx.exception.status_code)

    def test_invalid_json(self):
        self.session.request.return_value = make_response(200, text="<html>")
        with self.assertRaises(APIError):
            self.client.get_processing_status(3)

    def test_history(self):
        self.session.request.return_value = make_response(json_data=[
            {"id": 1, "user_query": "malla", "title": "123 - Rancho", "customer_name": "Rancho",
             "internal_quotation": None, "customer_quotation": "x", "created_at": "2026-10-19T10:00:00Z",
             "user_id": 9},
        ])

        records = self.client.list_history()

        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].id, 1)
        self.assertEqual(records[0].internal_quotation, "")
        self.assertEqual(records[0].extra, {"user_id": 9})

    def test_save_history(self):
        record = QuotationRecord(user_query="malla", quotation_id="123456191026",
                                 internal_quotation="i", customer_quotation="c")
        self.session.request.return_value = make_response(201, json_data=dict(record.to_payload(), id=4))

        saved = self.client.save_history(record)

        self.assertEqual(saved.id, 4)
        self.assertEqual(saved.quotation_id, "123456191026")
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("POST", "http://api.test/quotation-history/"))
        self.assertNotIn("id", kwargs["json"])

    def test_delete_history(self):
        self.session.request.return_value = make_response(204)
        self.assertIsNone(self.client.delete_history(4))

    def test_wait_for_processing_completes(self):
        self.session.request.side_effect = [
            make_response(json_data={"processing_status": "pending"}),
            make_response(json_data={"processing_status": "processing"}),
            make_response(json_data={"processing_status": "completed"}),
        ]
        clock = FakeClock()

        outcome = self.client.wait_for_processing(7, timeout=90, interval=2,
                                                  sleep=clock.sleep, clock=clock)

        self.assertEqual(outcome, ProcessingOutcome.COMPLETED)
        self.assertEqual(clock.sleeps, [2, 2])

    def test_wait_for_processing_failed(self):
        self.session.request.return_value = make_response(json_data={
            "processing_status": "failed", "processing_error": "429 quota exceeded",
        })
        clock = FakeClock()

        outcome = self.client.wait_for_processing(7, sleep=clock.sleep, clock=clock)
        self.assertEqual(outcome, ProcessingOutcome.FAILED)

    def test_wait_for_processing_times_out(self):
        self.session.request.return_value = make_response(json_data={"processing_status": "pending"})
        clock = FakeClock()

        outcome = self.client.wait_for_processing(7, timeout=5, interval=2,
                                                  sleep=clock.sleep, clock=clock)

        self.assertEqual(outcome, ProcessingOutcome.TIMED_OUT)
        self.assertEqual(self.session.request.call_count, 3)


class TestQuotaErrors(unittest.TestCase):

    def test_is_quota_error(self):
        test_cases = [
            ("Quota exceeded for model", True),
            ("Error 429", True),
            ("rate_limit_error", True),
            ("Rate limit reached", True),
            ("Invalid API key", False),
            ("", False),
            (None, False),
        ]

        for message, expected in test_cases:
            with self.subTest(message=message):
                self.assertEqual(is_quota_error(message), expected)


if __name__ == "__main__":
    unittest.main()
