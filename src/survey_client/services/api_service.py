"""API service for HTTP client abstraction."""
import requests
import time
import logging

IDEMPOTENT_METHODS = frozenset({'GET', 'HEAD', 'OPTIONS', 'PUT', 'DELETE'})


class APIService:
    """HTTP client for backend API calls with error handling and retry logic.

    Only idempotent methods are retried; a POST is sent exactly once.
    """

    def __init__(self, base_url='http://localhost:5000', max_retries=3, retry_delay=1.0,
                 timeout=5.0, access_token=None, upload_timeout=60.0):
        self.base_url = base_url.rstrip('/')
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.access_token = access_token
        self.session = requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def from_config(cls, config, access_token=None):
        return cls(
            base_url=config.api_base_url,
            max_retries=config.api_retry_attempts,
            timeout=config.api_timeout,
            upload_timeout=config.upload_timeout,
            access_token=access_token,
        )

    def _get_auth_headers(self):
        """Get authorization headers for API requests."""
        if self.access_token:
            return {'Authorization': f"Bearer {self.access_token}"}
        return {}

    def _merge_headers(self, kwargs):
        """Merge auth headers with any provided headers in kwargs."""
        auth_headers = self._get_auth_headers()
        if not auth_headers:
            return kwargs

        existing_headers = kwargs.get('headers', {})
        if not isinstance(existing_headers, dict):
            existing_headers = {}

        # Auth headers take precedence
        kwargs['headers'] = {**existing_headers, **auth_headers}
        return kwargs

    def _make_request(self, method, url, **kwargs):
        """Make HTTP request, retrying idempotent methods with exponential backoff."""
        kwargs = self._merge_headers(kwargs)
        kwargs.setdefault('timeout', self.timeout)
        attempts = self.max_retries if method in IDEMPOTENT_METHODS else 1

        last_exception = None
        response = None

        for attempt in range(attempts):
            try:
                response = self.session.request(method, url, **kwargs)
            except requests.exceptions.RequestException as e:
                last_exception = e
                if attempt < attempts - 1:
                    self.logger.warning(f"Request exception (attempt {attempt + 1}/{attempts}): {e}")
                    time.sleep(self.retry_delay * (2 ** attempt))
                    continue
                self.logger.error(f"{method} {url} failed after {attempts} attempt(s): {e}")
                raise

            # Don't retry on client errors (4xx) except timeout and rate limit
            retryable = response.status_code >= 500 or response.status_code in (408, 429)
            if not retryable or attempt == attempts - 1:
                return response

            self.logger.warning(f"Request failed (attempt {attempt + 1}/{attempts}): {response.status_code} {response.reason}")
            time.sleep(self.retry_delay * (2 ** attempt))

        if response is not None:
            return response
        raise last_exception or requests.exceptions.RequestException("All retry attempts failed")

    def get(self, endpoint, **kwargs):
        """GET request with error handling and retry."""
        return self._make_request('GET', f"{self.base_url}{endpoint}", **kwargs)

    def post(self, endpoint, **kwargs):
        """POST request; never retried."""
        return self._make_request('POST', f"{self.base_url}{endpoint}", **kwargs)

    def put(self, endpoint, **kwargs):
        """PUT request with error handling and retry."""
        return self._make_request('PUT', f"{self.base_url}{endpoint}", **kwargs)

    def delete(self, endpoint, **kwargs):
        """DELETE request with error handling and retry."""
        return self._make_request('DELETE', f"{self.base_url}{endpoint}", **kwargs)

    def login(self, username, password):
        """Log in and keep the bearer token for later requests.

        Returns:
            dict or None: The user record, or None when credentials are rejected
        """
        response = self.post('/api/auth/login', json={'username': username, 'password': password})
        if response.status_code != 200:
            self.logger.warning(f"Login rejected for {username}: {response.status_code}")
            return None
        payload = response.json()
        self.access_token = payload['token']
        return payload['user']

    def logout(self):
        if self.access_token:
            self.post('/api/auth/logout')
            self.access_token = None

    def upload_image(self, object_name, image_data, timeout=None):
        """Upload JPEG bytes to object storage under object_name via the backend."""
        filename = object_name.rsplit('/', 1)[-1]
        files = {'image': (filename, image_data, 'image/jpeg')}
        return self.post('/api/uploads', files=files, data={'object_name': object_name},
                         timeout=timeout or self.upload_timeout)
