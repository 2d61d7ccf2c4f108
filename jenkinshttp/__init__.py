#!/usr/bin/env python
# Software License Agreement (BSD License)
#
# Copyright (c) 2010, Willow Garage, Inc.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions
# are met:
#
#  * Redistributions of source code must retain the above copyright
#    notice, this list of conditions and the following disclaimer.
#  * Redistributions in binary form must reproduce the above
#    copyright notice, this list of conditions and the following
#    disclaimer in the documentation and/or other materials provided
#    with the distribution.
#  * Neither the name of Willow Garage, Inc. nor the names of its
#    contributors may be used to endorse or promote products derived
#    from this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS
# 'AS IS' AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT
# LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS
# FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE
# COPYRIGHT OWNER OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING,
# BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES;
# LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT
# LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN
# ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

'''
.. module:: jenkinshttp
    :platform: Unix, Windows
    :synopsis: HTTP client for the Jenkins REST API
    :noindex:

Example::

    >>> client = jenkinshttp.JenkinsHttpClient('http://localhost:8080/jenkins',
    ...                                        'admin', 'api-token')
    >>> job = client.get('job/my_job', jenkinshttp.models.Job)
    >>> with job.get_build(42).get_console_output() as console:
    ...     print(console.read().decode('utf-8'))
'''

import contextlib
import json
import logging
import re

import requests
import requests.exceptions as req_exc
from requests.utils import get_encoding_from_headers
from urllib.parse import urljoin, urlparse

from jenkinshttp import endpoints
from jenkinshttp.models import Crumb
from jenkinshttp.streams import RequestReleasingStream

# Set default logging handler to avoid "No handler found" warnings.
logging.getLogger(__name__).addHandler(logging.NullHandler())

logger = logging.getLogger(__name__)

# Connect and read timeouts in seconds, passed to every request.
DEFAULT_CONNECT_TIMEOUT = 0.5
DEFAULT_READ_TIMEOUT = 3.0
DEFAULT_TIMEOUT = (DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT)

DEFAULT_PORTS = {'http': 80, 'https': 443}

ABSOLUTE_URL_RE = re.compile(r'^https?://', re.IGNORECASE)


class JenkinsException(Exception):
    '''General exception type for jenkins-API-related failures.'''
    pass


class JenkinsConnectionError(JenkinsException):
    '''The server could not be reached or the exchange broke off.'''
    pass


class TimeoutException(JenkinsConnectionError):
    '''A special exception to call out in the case of a socket timeout.'''


class JenkinsHTTPError(JenkinsException):
    '''The server answered with a status outside the success range.

    :attr:`status_code`, :attr:`reason` and :attr:`body` are taken from
    the response for diagnostics.
    '''

    def __init__(self, message, status_code=None, reason=None, body=None):
        super(JenkinsHTTPError, self).__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body


class AuthenticationException(JenkinsHTTPError):
    '''A special exception to call out a 401 or 403 response.'''
    pass


class NotFoundException(JenkinsHTTPError):
    '''A special exception to call out the case of receiving a 404.'''
    pass


class DecodeException(JenkinsException, ValueError):
    '''The response body is not JSON of the expected shape.'''
    pass


class MissingHeaderException(JenkinsException):
    '''A special exception to call out a response lacking an expected header.'''
    pass


class WrappedSession(requests.Session):
    """A wrapper for requests.Session to override 'verify' property, ignoring REQUESTS_CA_BUNDLE environment variable.

    This is a workaround for https://github.com/kennethreitz/requests/issues/3829 (will be fixed in requests 3.0.0)
    """

    def merge_environment_settings(self, url, proxies, stream, verify, *args,
                                   **kwargs):
        if self.verify is False:
            verify = False

        return super(WrappedSession, self).merge_environment_settings(url,
                                                                      proxies,
                                                                      stream,
                                                                      verify,
                                                                      *args,
                                                                      **kwargs)


class ScopedHTTPBasicAuth(requests.auth.HTTPBasicAuth):
    '''Basic auth sent up front, but only to one host and port.

    Jenkins does not always answer anonymous requests with a 401
    challenge (the crumb issuer for one), so the ``Authorization`` header
    goes out with the first request instead of after a challenge.
    Requests to any other host, such as absolute URLs handed back by the
    server, are sent without credentials.
    '''

    def __init__(self, username, password, host, port):
        super(ScopedHTTPBasicAuth, self).__init__(
            username.encode('utf-8'), password.encode('utf-8'))
        self.host = host
        self.port = port

    def __call__(self, r):
        if self.in_scope(r.url):
            return super(ScopedHTTPBasicAuth, self).__call__(r)
        logger.debug('not sending credentials to %s', r.url)
        return r

    def in_scope(self, url):
        parts = urlparse(url)
        return (parts.hostname == self.host and
                _port_of(parts) == self.port)


def _port_of(parts):
    return parts.port or DEFAULT_PORTS.get(parts.scheme)


def url_join(path1, path2):
    '''Join two URL fragments with exactly one ``/`` between them.

    >>> url_join('/jenkins/', '/job/foo')
    '/jenkins/job/foo'
    '''
    return path1.rstrip('/') + '/' + path2.lstrip('/')


@contextlib.contextmanager
def _translate_request_errors():
    try:
        yield
    except req_exc.Timeout as e:
        raise TimeoutException('Error in request: %s' % e)
    except req_exc.RequestException as e:
        raise JenkinsConnectionError('Error in request: %s' % e)


class JenkinsHttpClient(object):

    def __init__(self, url, username=None, password=None,
                 timeout=DEFAULT_TIMEOUT, verify=True, headers=None):
        '''Create an HTTP client for a Jenkins instance.

        All methods will raise :class:`JenkinsException` on failure.

        :param url: URL of Jenkins server, may include a context path
            such as ``http://host:8080/jenkins``, ``str``
        :param username: Server username, ``str``
        :param password: Server password or API token, ``str``
        :param timeout: ``(connect, read)`` timeouts in secs, or a single
            value for both (default: ``(0.5, 3.0)``), ``tuple`` or ``float``
        :param verify: Verify the server's TLS certificate, ``bool``
        :param headers: Extra headers to send with every request, ``dict``
        '''
        if url[-1] == '/':
            self.server = url
        else:
            self.server = url + '/'

        parts = urlparse(self.server)
        self.context = parts.path or '/'
        self._root = '%s://%s/' % (parts.scheme, parts.netloc)

        self.timeout = timeout
        self._session = WrappedSession()
        self._session.verify = verify
        if headers:
            self._session.headers.update(headers)

        if username and username.strip():
            self._session.auth = ScopedHTTPBasicAuth(
                username, password or '', parts.hostname, _port_of(parts))
        self.auth = self._session.auth

    def close(self):
        '''Release the pooled connections of this client.'''
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def resolve_api_url(self, path):
        '''Return the absolute JSON API URL for ``path``.

        Relative paths are joined onto the client context, absolute
        ``http(s)://`` URLs are kept. ``api/json`` is then appended to
        the path, before the query string if there is one::

            >>> client = JenkinsHttpClient('http://example.com/jenkins')
            >>> client.resolve_api_url('job/foo?depth=1')
            'http://example.com/jenkins/job/foo/api/json?depth=1'

        :param path: path to request, relative or absolute, ``str``
        :returns: ``str``
        '''
        if not ABSOLUTE_URL_RE.match(path):
            path = url_join(self.context, path)
        if '?' in path:
            path, query = path.split('?', 1)
            path = url_join(path, endpoints.API_SUFFIX) + '?' + query
        else:
            path = url_join(path, endpoints.API_SUFFIX)
        return urljoin(self._root, path)

    def _request(self, req, allow_redirects=True):

        r = self._session.prepare_request(req)
        # requests.Session.send() does not honor env settings by design
        # see https://github.com/requests/requests/issues/2807
        _settings = self._session.merge_environment_settings(
            r.url, {}, True, self._session.verify, None)
        _settings['timeout'] = self.timeout
        _settings['allow_redirects'] = allow_redirects
        logger.debug('%s %s', r.method, r.url)
        return self._session.send(r, **_settings)

    def _response_handler(self, response):
        '''Raise unless ``response`` carries a 2xx status.

        An unfollowed redirect is an error too: Jenkins sends a POST
        without a valid session to ``/login`` with a 302.
        '''
        status = response.status_code
        if 200 <= status < 300:
            return response

        body = response.text
        # Jenkins's funky authentication means its nigh impossible to
        # distinguish errors.
        if status in (401, 403):
            msg = 'Error in request. ' + \
                  'Possibly authentication failed [%s]: %s' % (
                      status, response.reason)
            if body:
                msg += '\n' + body
            raise AuthenticationException(msg, status, response.reason, body)
        elif status == 404:
            raise NotFoundException('Requested item could not be found',
                                    status, response.reason, body)
        raise JenkinsHTTPError(
            'Error in request [%s]: %s for url: %s' % (
                status, response.reason, response.url),
            status, response.reason, body)

    def jenkins_request(self, req, read, allow_redirects=True):
        '''Utility routine for one exchange with the Jenkins server.

        The response is validated, handed to ``read`` and closed, whatever
        the outcome.

        :param req: A ``requests.Request`` to submit.
        :param read: Callable turning the validated ``requests.Response``
            into the result of the call.
        :param allow_redirects: Follow redirects. When ``False`` a redirect
            raises :class:`JenkinsHTTPError`.
        :returns: whatever ``read`` returns
        '''
        with _translate_request_errors():
            response = self._request(req, allow_redirects)
            try:
                self._response_handler(response)
                return read(response)
            finally:
                response.close()

    def _decoder(self, cls):

        def decode(response):
            try:
                data = json.loads(response.text)
                result = cls.from_json(data)
            except ValueError as e:
                raise DecodeException(
                    'Could not parse JSON info for %s from %s: %s'
                    % (cls.__name__, response.url, e))
            result.set_client(self)
            return result

        return decode

    def get(self, path, cls=None):
        '''Perform a GET request against the JSON API of ``path``.

        :param path: path to request, relative or absolute, ``str``
        :param cls: :class:`jenkinshttp.models.BaseModel` subclass to
            decode the body into, or ``None`` for the body text
        :returns: an instance of ``cls`` attached to this client, or
            ``str`` when no ``cls`` is given
        '''
        req = requests.Request('GET', self.resolve_api_url(path))
        if cls is None:
            return self.jenkins_request(req, _read_text)
        return self.jenkins_request(req, self._decoder(cls))

    def get_quietly(self, path, cls):
        '''Like :meth:`get`, but return ``None`` instead of raising.

        Any failure of the exchange is swallowed (unreachable server, error
        status, undecodable body), not only the 404 a server without CSRF
        protection answers ``/crumbIssuer`` with.
        '''
        try:
            return self.get(path, cls)
        except JenkinsException as e:
            logger.debug('ignoring failed GET of %s: %s', path, e)
            return None

    def get_file(self, url):
        '''Perform a GET request and return the body as a stream.

        ``url`` is requested as given, without ``api/json``. The caller
        owns the connection until the stream is closed.

        :param url: absolute URL, or a path relative to the server, ``str``
        :returns: :class:`jenkinshttp.streams.RequestReleasingStream`
        '''
        if not ABSOLUTE_URL_RE.match(url):
            url = url_join(self.server, url)
        with _translate_request_errors():
            response = self._request(requests.Request('GET', url))
            try:
                self._response_handler(response)
            except Exception:
                response.close()
                raise
        return RequestReleasingStream(response)

    def get_crumb(self):
        '''Fetch a fresh crumb from the crumb issuer.

        :returns: :class:`jenkinshttp.models.Crumb`, or ``None`` if the
            server does not issue crumbs
        '''
        crumb = self.get_quietly(endpoints.CRUMB_URL, Crumb)
        if crumb is None or not crumb.as_header():
            logger.debug('no crumb issued by %s', self.server)
            return None
        return crumb

    def _post_request(self, path, body, content_type, crumb):
        headers = {}
        if crumb:
            issued = self.get_crumb()
            if issued is not None:
                headers.update(issued.as_header())
        data = None
        if body is not None:
            try:
                data = body.encode(_charset_of(content_type))
            except UnicodeEncodeError:
                # charset-less text/* defaults to ISO-8859-1
                logger.debug('body not encodable as %s, sending utf-8',
                             _charset_of(content_type))
                content_type = _with_charset(content_type, 'utf-8')
                data = body.encode('utf-8')
            headers['Content-Type'] = content_type
        return requests.Request('POST', self.resolve_api_url(path),
                                data=data, headers=headers)

    def post(self, path, data=None, cls=None, crumb=True):
        '''Perform a POST request with a JSON body.

        :param path: path to request, relative or absolute, ``str``
        :param data: payload serialized to JSON, ``dict``, ``list`` or
            :class:`jenkinshttp.models.BaseModel`; ``None`` sends no body
        :param cls: :class:`jenkinshttp.models.BaseModel` subclass to decode
            the response into, or ``None`` when no body is expected
        :param crumb: add a crumb header when the server issues one,
            ``bool``
        :returns: an instance of ``cls`` or ``None``
        '''
        body = None
        if data is not None:
            body = json.dumps(data, default=_to_json)
        req = self._post_request(path, body, endpoints.APPLICATION_JSON, crumb)
        if cls is None:
            return self.jenkins_request(req, _discard, allow_redirects=False)
        return self.jenkins_request(req, self._decoder(cls),
                                    allow_redirects=False)

    def post_for_location(self, path, data=None, crumb=True):
        '''Perform a POST request and return its ``Location`` header.

        Used for endpoints answering with a pointer to the resource they
        created (a queue item, a new job) instead of a body.

        :returns: the ``Location`` header value, ``str``
        :raises: :class:`MissingHeaderException` if the header is absent
        '''
        body = None
        if data is not None:
            body = json.dumps(data, default=_to_json)
        req = self._post_request(path, body, endpoints.APPLICATION_JSON, crumb)
        return self.jenkins_request(req, self._read_location,
                                    allow_redirects=False)

    def _read_location(self, response):
        _discard(response)
        if 'Location' not in response.headers:
            raise MissingHeaderException(
                "Header 'Location' not found in "
                "response from server[%s]" % self.server)
        return response.headers['Location']

    def post_xml(self, path, xml_data, crumb=True):
        '''Perform a POST request with an XML body.

        :param path: path to request, relative or absolute, ``str``
        :param xml_data: XML document, such as a job ``config.xml``, ``str``
        :param crumb: add a crumb header when the server issues one,
            ``bool``
        :returns: response body text, ``str``
        '''
        req = self._post_request(path, xml_data, endpoints.TEXT_XML, crumb)
        return self.jenkins_request(req, _read_text, allow_redirects=False)

    def post_text(self, path, text_data, content_type=endpoints.TEXT_PLAIN,
                  crumb=True):
        '''Perform a POST request with a text body.

        :param content_type: Content-Type of ``text_data``; its charset
            parameter selects the body encoding, ``str``
        :returns: response body text, ``str``
        '''
        req = self._post_request(path, text_data, content_type, crumb)
        return self.jenkins_request(req, _read_text, allow_redirects=False)


def _read_text(response):
    return response.text


def _discard(response):
    # read the body so the connection goes back to the pool
    response.content
    return None


def _to_json(obj):
    if hasattr(obj, 'to_json'):
        return obj.to_json()
    raise TypeError('%r is not JSON serializable' % (obj,))


def _charset_of(content_type):
    return get_encoding_from_headers({'content-type': content_type}) or \
        'utf-8'


def _with_charset(content_type, charset):
    params = [p for p in content_type.split(';')
              if not p.strip().lower().startswith('charset=')]
    return '; '.join([p.strip() for p in params] + ['charset=%s' % charset])
