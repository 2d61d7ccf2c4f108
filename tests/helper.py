import io
import json

from mock import Mock
import requests
import socketserver


class NullServer(socketserver.TCPServer):

    request_queue_size = 1

    def __init__(self, server_address, *args, **kwargs):
        # simply init'ing is sufficient to open the port, which
        # with the server not started creates a black hole server
        socketserver.TCPServer.__init__(
            self, server_address, socketserver.BaseRequestHandler,
            *args, **kwargs)


def build_response_mock(status_code, json_body=None, headers=None,
                        text=None, reason=None, url=None):
    '''Return a real ``requests.Response`` whose ``close`` is a spy.

    The body is served from memory, so it can be drained exactly like a
    streamed response coming off the wire.
    '''
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.url = url
    response.encoding = 'utf-8'

    if json_body is not None:
        text = json.dumps(json_body)
    body = (text or '').encode('utf-8')
    if body:
        response.headers['content-length'] = str(len(body))
    response.raw = io.BytesIO(body)

    if headers is not None:
        for k, v in headers.items():
            response.headers[k] = v

    response.close = Mock(wraps=response.close)
    return response
