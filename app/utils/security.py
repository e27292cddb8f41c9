from urllib.parse import urlparse, urljoin
from flask import request


def is_safe_url(target):
    """Parameter ?next= hanya boleh mengarah ke host aplikasi ini sendiri."""
    if not target or target.startswith('//'):
        return False

    host = urlparse(request.host_url)
    candidate = urlparse(urljoin(request.host_url, target))

    if candidate.scheme not in ('http', 'https'):
        return False
    return candidate.netloc == host.netloc
