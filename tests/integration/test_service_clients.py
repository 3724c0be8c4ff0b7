"""Integration tests for the OCR and solver clients using HTTP mocking.

This module tests the request building, retry logic and error mapping of
the service clients using the 'responses' library to mock HTTP responses.

Tests cover:
    - request_with_retry: Retry logic for 5xx errors, 429 rate limiting
    - OcrClient: stroke payload, credential headers, result field
    - SolverClient: query parameters, envelope unwrapping, input cleanup
    - Error mapping: transport vs decoding failures

Run with:
    python3 -m pytest tests/integration/test_service_clients.py -v
"""

import json
import unittest
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import requests
import responses

from notasolver.clients.base import ServiceClient, parse_retry_after
from notasolver.clients.ocr import OcrClient, build_stroke_payload, round_half_away
from notasolver.clients.solver import SolverClient, prepare_solver_input
from notasolver.config import OCR_URL, SOLVER_URL, ServiceConfig
from notasolver.domain.geometry import StrokeSet
from notasolver.errors import (
    OcrDecodingError,
    OcrTransportError,
    SolveDecodingError,
    SolveInputEncodingError,
    SolveTransportError,
)


class TestRequestWithRetry(unittest.TestCase):
    """Test the request_with_retry method in ServiceClient."""

    def setUp(self):
        self.client = ServiceClient(max_retries=3, retry_delay=0.1)

    @responses.activate
    def test_successful_request(self):
        responses.add(responses.GET, "https://example.com/test", body="success", status=200)

        response = self.client.request_with_retry("GET", "https://example.com/test")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(responses.calls), 1)

    @responses.activate
    def test_retries_on_500(self):
        """Two 500s followed by a success."""
        responses.add(responses.GET, "https://example.com/test", status=500)
        responses.add(responses.GET, "https://example.com/test", status=500)
        responses.add(responses.GET, "https://example.com/test", body="success", status=200)

        with patch('time.sleep'):
            response = self.client.request_with_retry("GET", "https://example.com/test")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(responses.calls), 3)

    @responses.activate
    def test_returns_last_error_response(self):
        responses.add(responses.GET, "https://example.com/test", status=503)

        with patch('time.sleep'):
            response = self.client.request_with_retry("GET", "https://example.com/test")

        self.assertEqual(response.status_code, 503)
        self.assertEqual(len(responses.calls), 3)

    @responses.activate
    def test_rate_limit_honours_retry_after(self):
        responses.add(responses.GET, "https://example.com/test", status=429,
                      headers={'Retry-After': '2'})
        responses.add(responses.GET, "https://example.com/test", status=200)

        with patch('time.sleep') as sleep:
            response = self.client.request_with_retry("GET", "https://example.com/test")

        self.assertEqual(response.status_code, 200)
        sleep.assert_called_once_with(2.0)

    @responses.activate
    def test_unusable_retry_after_falls_back_to_backoff(self):
        """Negative, NaN and infinite Retry-After values use the backoff delay."""
        for value in ('-1', 'nan', 'inf', 'soon'):
            responses.reset()
            responses.add(responses.GET, "https://example.com/test", status=429,
                          headers={'Retry-After': value})
            responses.add(responses.GET, "https://example.com/test", status=200)

            with patch('time.sleep') as sleep:
                response = self.client.request_with_retry("GET", "https://example.com/test")

            self.assertEqual(response.status_code, 200, value)
            sleep.assert_called_once_with(0.1)

    def test_parse_retry_after(self):
        self.assertEqual(parse_retry_after('3', 1.0), 3.0)
        self.assertEqual(parse_retry_after('0', 1.0), 0.0)
        self.assertEqual(parse_retry_after(None, 1.0), 1.0)
        self.assertEqual(parse_retry_after('-5', 1.0), 1.0)
        self.assertEqual(parse_retry_after('NaN', 1.0), 1.0)

    @responses.activate
    def test_post_not_resent_after_server_error(self):
        responses.add(responses.POST, "https://example.com/test", status=500)
        responses.add(responses.POST, "https://example.com/test", status=200)

        with patch('time.sleep') as sleep:
            response = self.client.request_with_retry("POST", "https://example.com/test")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(len(responses.calls), 1)
        sleep.assert_not_called()

    @responses.activate
    def test_post_not_resent_after_read_timeout(self):
        responses.add(responses.POST, "https://example.com/test",
                      body=requests.ReadTimeout("slow"))

        with patch('time.sleep'):
            with self.assertRaises(requests.ReadTimeout):
                self.client.request_with_retry("POST", "https://example.com/test")

        self.assertEqual(len(responses.calls), 1)

    @responses.activate
    def test_post_retried_after_connection_error(self):
        responses.add(responses.POST, "https://example.com/test",
                      body=requests.ConnectionError("refused"))
        responses.add(responses.POST, "https://example.com/test", status=200)

        with patch('time.sleep'):
            response = self.client.request_with_retry("POST", "https://example.com/test")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(responses.calls), 2)

    @responses.activate
    def test_post_retried_after_rate_limit(self):
        responses.add(responses.POST, "https://example.com/test", status=429)
        responses.add(responses.POST, "https://example.com/test", status=200)

        with patch('time.sleep'):
            response = self.client.request_with_retry("POST", "https://example.com/test")

        self.assertEqual(response.status_code, 200)

    @responses.activate
    def test_client_error_not_retried(self):
        responses.add(responses.GET, "https://example.com/test", status=404)

        response = self.client.request_with_retry("GET", "https://example.com/test")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(len(responses.calls), 1)

    @responses.activate
    def test_connection_error_raised_after_retries(self):
        responses.add(responses.GET, "https://example.com/test",
                      body=requests.ConnectionError("refused"))

        with patch('time.sleep') as sleep:
            with self.assertRaises(requests.ConnectionError):
                self.client.request_with_retry("GET", "https://example.com/test")

        self.assertEqual(sleep.call_count, 2)


class TestStrokePayload(unittest.TestCase):
    """Tests for the OCR request body."""

    def test_round_half_away(self):
        self.assertEqual(round_half_away(2.5), 3)
        self.assertEqual(round_half_away(-2.5), -3)
        self.assertEqual(round_half_away(0.49), 0)
        self.assertEqual(round_half_away(-0.51), -1)

    def test_payload_shape(self):
        strokes = StrokeSet.from_list([[[1.5, 2.4], [-0.5, 3.6]], [[10, 20], [11, 21], [12, 22]]])
        payload = build_stroke_payload(strokes)
        self.assertEqual(payload, {
            'strokes': {'strokes': {
                'x': [[2, -1], [10, 11, 12]],
                'y': [[2, 4], [20, 21, 22]],
            }}
        })

    def test_empty_stroke_set(self):
        self.assertEqual(build_stroke_payload(StrokeSet()),
                         {'strokes': {'strokes': {'x': [], 'y': []}}})


class TestOcrClient(unittest.TestCase):
    """Tests for OcrClient.recognize."""

    def setUp(self):
        self.client = OcrClient('my-app', 'my-key', max_retries=2, retry_delay=0)
        self.strokes = StrokeSet.from_list([[[10.2, 20.7], [11.5, 21.5]]])

    @responses.activate
    def test_recognize(self):
        responses.add(responses.POST, OCR_URL, json={'latex_styled': 'x^{2}=4', 'confidence': 0.9})

        self.assertEqual(self.client.recognize(self.strokes), 'x^{2}=4')

        sent = responses.calls[0].request
        self.assertEqual(sent.headers['app_id'], 'my-app')
        self.assertEqual(sent.headers['app_key'], 'my-key')
        self.assertEqual(sent.headers['Content-Type'], 'application/json')
        body = json.loads(sent.body)
        self.assertEqual(body['strokes']['strokes']['x'], [[10, 12]])
        self.assertEqual(body['strokes']['strokes']['y'], [[21, 22]])

    @responses.activate
    def test_error_status(self):
        responses.add(responses.POST, OCR_URL, json={'error': 'unauthorized'}, status=401)
        with self.assertRaises(OcrTransportError):
            self.client.recognize(self.strokes)
        self.assertEqual(len(responses.calls), 1)

    @responses.activate
    def test_server_error_is_not_resent(self):
        """A metered POST answered with 5xx is reported, not re-sent."""
        responses.add(responses.POST, OCR_URL, status=502)
        with patch('time.sleep'):
            with self.assertRaises(OcrTransportError):
                self.client.recognize(self.strokes)
        self.assertEqual(len(responses.calls), 1)

    @responses.activate
    def test_negative_retry_after_stays_a_transport_error(self):
        responses.add(responses.POST, OCR_URL, status=429, headers={'Retry-After': '-1'})
        with patch('time.sleep') as sleep:
            with self.assertRaises(OcrTransportError):
                self.client.recognize(self.strokes)
        self.assertEqual(len(responses.calls), 2)
        sleep.assert_called_once_with(0)

    @responses.activate
    def test_connection_error(self):
        responses.add(responses.POST, OCR_URL, body=requests.ConnectionError("down"))
        with patch('time.sleep'):
            with self.assertRaises(OcrTransportError):
                self.client.recognize(self.strokes)

    @responses.activate
    def test_not_json(self):
        responses.add(responses.POST, OCR_URL, body="<html>oops</html>", status=200)
        with self.assertRaises(OcrDecodingError):
            self.client.recognize(self.strokes)

    @responses.activate
    def test_missing_field(self):
        responses.add(responses.POST, OCR_URL, json={'error': 'no strokes recognized'})
        with self.assertRaises(OcrDecodingError) as ctx:
            self.client.recognize(self.strokes)
        self.assertIn('no strokes recognized', str(ctx.exception))

    @responses.activate
    def test_from_config_uses_configured_url(self):
        config = ServiceConfig(ocr_app_id='a', ocr_app_key='k', ocr_url='http://localhost/ocr')
        responses.add(responses.POST, 'http://localhost/ocr', json={'latex_styled': 'y'})
        self.assertEqual(OcrClient.from_config(config).recognize(self.strokes), 'y')


class TestPrepareSolverInput(unittest.TestCase):
    """Tests for prepare_solver_input."""

    def test_strips_delimiters_and_presentation(self):
        self.assertEqual(prepare_solver_input('$$ \\displaystyle x^2 = 4 $$'), 'x^2 = 4')
        self.assertEqual(prepare_solver_input('$x+1$'), 'x+1')
        self.assertEqual(prepare_solver_input('\\[ y \\]'), 'y')

    def test_several_math_segments_kept_intact(self):
        self.assertEqual(prepare_solver_input('$a$=$b$'), '$a$=$b$')
        self.assertEqual(prepare_solver_input('$$a$$ = $$b$$'), '$$a$$ = $$b$$')
        self.assertEqual(prepare_solver_input('$x$ and $y$'), '$x$ and $y$')

    def test_escaped_dollar(self):
        self.assertEqual(prepare_solver_input('$5\\$ + x$'), '5\\$ + x')
        self.assertEqual(prepare_solver_input('$a\\$'), '$a\\$')

    def test_collapses_whitespace(self):
        self.assertEqual(prepare_solver_input('  a\n +\t b '), 'a + b')

    def test_plain_text_unchanged(self):
        self.assertEqual(prepare_solver_input('\\frac{d}{dx} x^2'), '\\frac{d}{dx} x^2')

    def test_rejections(self):
        for bad in ('', '   ', '$$ $$', None, '\ud800'):
            with self.assertRaises(SolveInputEncodingError, msg=repr(bad)):
                prepare_solver_input(bad)


class TestSolverClient(unittest.TestCase):
    """Tests for SolverClient.solve."""

    def setUp(self):
        self.client = SolverClient('wolf-id', max_retries=1)

    @responses.activate
    def test_query_parameters(self):
        responses.add(responses.GET, SOLVER_URL, json={'queryresult': {'success': True}})

        self.client.solve('$x^2 = 4$')

        query = parse_qs(urlparse(responses.calls[0].request.url).query)
        self.assertEqual(query['appid'], ['wolf-id'])
        self.assertEqual(query['input'], ['x^2 = 4'])
        self.assertEqual(query['podstate'], ['Step-by-step solution'])
        self.assertEqual(query['format'], ['image'])
        self.assertEqual(query['mag'], ['2.0'])
        self.assertEqual(query['output'], ['json'])

    @responses.activate
    def test_unwraps_envelope(self):
        inner = {'success': True, 'error': False, 'pods': []}
        responses.add(responses.GET, SOLVER_URL, json={'queryresult': inner})
        self.assertEqual(self.client.solve('x'), inner)

    @responses.activate
    def test_bare_document(self):
        doc = {'success': True, 'error': False, 'pods': []}
        responses.add(responses.GET, SOLVER_URL, json=doc)
        self.assertEqual(self.client.solve('x'), doc)

    @responses.activate
    def test_error_status(self):
        responses.add(responses.GET, SOLVER_URL, status=503)
        with self.assertRaises(SolveTransportError):
            self.client.solve('x')

    @responses.activate
    def test_not_json(self):
        responses.add(responses.GET, SOLVER_URL, body="Error 1: Invalid appid", status=200)
        with self.assertRaises(SolveDecodingError):
            self.client.solve('x')

    @responses.activate
    def test_envelope_not_object(self):
        responses.add(responses.GET, SOLVER_URL, json={'queryresult': 'nope'})
        with self.assertRaises(SolveDecodingError):
            self.client.solve('x')

    @responses.activate
    def test_bad_input_makes_no_request(self):
        with self.assertRaises(SolveInputEncodingError):
            self.client.solve('$$  $$')
        self.assertEqual(len(responses.calls), 0)


if __name__ == '__main__':
    unittest.main()
