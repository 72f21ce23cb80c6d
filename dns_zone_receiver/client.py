"""Push a zone file to one or more receivers.

Used on the exporter side, e.g. from a hidden master after a zone rebuild.
"""

import logging
import os

import requests

logger = logging.getLogger(__name__)


def upload_zone(server_url, zone_name, zone_path, timeout=30):
    """POST zone_path to a receiver as multipart field ``zone``.

    Returns True when the receiver answered 200, False otherwise.
    """
    url = f"{server_url.rstrip('/')}/v1/zones/{zone_name}/upload"
    try:
        with open(zone_path, 'rb') as f:
            files = {'zone': (os.path.basename(zone_path), f)}
            response = requests.post(url, files=files, timeout=timeout)
    except (OSError, requests.RequestException) as e:
        logger.error("Error sending file", extra={"context": {"url": url, "error": str(e)}})
        return False

    if response.status_code != 200:
        logger.error(
            "Failed to upload zone",
            extra={"context": {"url": url, "status": response.status_code, "body": response.text}},
        )
        return False
    logger.info("Zone uploaded", extra={"context": {"url": url, "zone": zone_name}})
    return True


def upload_zone_to_all(server_urls, zone_name, zone_path, timeout=30):
    """Upload to every receiver, stopping at the first failure."""
    for server_url in server_urls:
        if not upload_zone(server_url, zone_name, zone_path, timeout=timeout):
            return False
    return True
