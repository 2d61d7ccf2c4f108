from mock import patch
import requests

import jenkinshttp
from jenkinshttp.streams import RequestReleasingStream
from tests.base import JenkinsHttpTestBase
from tests.helper import build_response_mock


def _broken_chunks(*chunks):
    for chunk in chunks:
        yield chunk
    raise requests.exceptions.ChunkedEncodingError('Connection broken')


class JenkinsGetFileTest(JenkinsHttpTestBase):

    console = u'Started by user anonymous\nFinished: SUCCESS\n'

    @patch('jenkinshttp.requests.Session.send', autospec=True)
    def test_simple(self, session_send_mock):
        response = build_response_mock(200, text=self.console)
        session_send_mock.return_value = response

        stream = self.j.get_file(self.make_url('job/TestJob/1/consoleText'))

        self.assertIsInstance(stream, RequestReleasingStream)
        self.assertEqual(session_send_mock.call_args[0][1].url,
                         self.make_url('job/TestJob/1/consoleText'))
        self.assertFalse(response.close.called)
        self.assertEqual(stream.read(), self.console.encode('utf-8'))
        self.assertFalse(response.close.called)
        stream.close()
        self.assertReleasedOnce(response)

    @patch('jenkinshttp.requests.Session.send', autospec=True)
    def test_relative_url(self, session_send_mock):
        session_send_mock.return_value = build_response_mock(
            200, text=self.console)

        with self.j.get_file('job/TestJob/1/consoleText'):
            pass

        self.assertEqual(session_send_mock.call_args[0][1].url,
                         self.make_url('job/TestJob/1/consoleText'))

    @patch('jenkinshttp.requests.Session.send', autospec=True)
    def test_close_is_idempotent(self, session_send_mock):
        response = build_response_mock(200, text=self.console)
        session_send_mock.return_value = response

        stream = self.j.get_file(self.make_url('job/TestJob/1/consoleText'))
        stream.close()
        stream.close()

        self.assertReleasedOnce(response)
        self.assertTrue(stream.closed)
        self.assertEqual(stream.read(), b'')

    @patch('jenkinshttp.requests.Session.send', autospec=True)
    def test_released_without_reading(self, session_send_mock):
        response = build_response_mock(200, text=self.console)
        session_send_mock.return_value = response

        with self.j.get_file(self.make_url('job/TestJob/1/consoleText')):
            pass

        self.assertReleasedOnce(response)

    @patch('jenkinshttp.requests.Session.send', autospec=True)
    def test_partial_reads(self, session_send_mock):
        session_send_mock.return_value = build_response_mock(
            200, text=self.console)

        with self.j.get_file(self.make_url('job/TestJob/1/consoleText')) \
                as stream:
            first = stream.read(7)
            rest = b''.join(stream)

        self.assertEqual(first, b'Started')
        self.assertEqual(first + rest, self.console.encode('utf-8'))

    @patch('jenkinshttp.requests.Session.send', autospec=True)
    def test_response_404(self, session_send_mock):
        response = build_response_mock(404, reason="Not Found")
        session_send_mock.return_value = response

        with self.assertRaises(jenkinshttp.NotFoundException):
            self.j.get_file(self.make_url('job/TestJob/1/consoleText'))
        self.assertReleasedOnce(response)

    @patch('jenkinshttp.requests.Session.send', autospec=True)
    def test_truncated_read(self, session_send_mock):
        response = build_response_mock(200, text=self.console)
        session_send_mock.return_value = response

        with patch.object(response, 'iter_content',
                          return_value=_broken_chunks(b'Started')):
            with self.j.get_file(self.make_url('job/TestJob/1/consoleText')) \
                    as stream:
                with self.assertRaises(jenkinshttp.JenkinsConnectionError):
                    stream.read()
        self.assertReleasedOnce(response)

    @patch('jenkinshttp.requests.Session.send', autospec=True)
    def test_truncated_iteration(self, session_send_mock):
        response = build_response_mock(200, text=self.console)
        session_send_mock.return_value = response
        chunks = []

        with patch.object(response, 'iter_content',
                          return_value=_broken_chunks(b'Started', b' by')):
            with self.j.get_file(self.make_url('job/TestJob/1/consoleText')) \
                    as stream:
                with self.assertRaises(jenkinshttp.JenkinsConnectionError):
                    for chunk in stream:
                        chunks.append(chunk)

        self.assertEqual(chunks, [b'Started', b' by'])
        self.assertReleasedOnce(response)
