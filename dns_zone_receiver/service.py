import logging
import sys

from flask import Flask, Response, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from dns_zone_receiver.committer import commit_zone
from dns_zone_receiver.config import ReceiverConfig
from dns_zone_receiver.errors import (
    ConfigError,
    HookError,
    HookTimeoutError,
    InvalidZoneNameError,
    StorageError,
    UploadTooLargeError,
)
from dns_zone_receiver.hooks import run_hook
from dns_zone_receiver.logging_config import configure_logging

logger = logging.getLogger(__name__)

CONFIG_KEY = "ZONE_RECEIVER_CONFIG"

# Room for multipart boundaries and part headers on top of the file itself.
_MULTIPART_OVERHEAD = 64 * 1024


def create_app(config):
    app = Flask(__name__)
    app.config[CONFIG_KEY] = config
    if config.max_upload_bytes:
        app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes + _MULTIPART_OVERHEAD

    app.add_url_rule(
        "/v1/zones/<zonename>/upload", view_func=upload_zone, methods=["POST"]
    )
    app.register_error_handler(RequestEntityTooLarge, _too_large)
    return app


def upload_zone(zonename):
    config = current_app.config[CONFIG_KEY]

    zone = request.files.get("zone")
    if zone is None:
        logger.error("failed to get 'zone' parameter", extra={"context": {"zone": zonename}})
        return jsonify({"error": "failed to get 'zone' parameter"}), 400

    try:
        out_path = commit_zone(config, zonename, zone.stream)
    except InvalidZoneNameError as e:
        logger.error("rejected zone name", extra={"context": {"zone": zonename, "error": str(e)}})
        return jsonify({"error": str(e)}), 400
    except UploadTooLargeError as e:
        logger.error("zone file too large", extra={"context": {"zone": zonename, "error": str(e)}})
        return jsonify({"error": str(e)}), 413
    except StorageError as e:
        logger.error(
            str(e),
            exc_info=True,
            extra={"context": {"zone": zonename, "path": e.path, "error": str(e.__cause__ or e)}},
        )
        return jsonify({"error": "failed to save zone file"}), 500
    finally:
        zone.close()

    try:
        run_hook(config.post_hook, config.post_hook_timeout, zonename)
    except HookTimeoutError as e:
        logger.error("post hook timed out", extra={"context": {"zone": zonename, "error": str(e)}})
    except HookError as e:
        logger.error(
            "failed to execute post hook", extra={"context": {"zone": zonename, "error": str(e)}}
        )

    logger.info("zone file uploaded successfully", extra={"context": {"path": str(out_path)}})
    return Response("done\n", status=200, mimetype="text/plain")


def _too_large(e):
    logger.error("upload rejected", extra={"context": {"error": str(e)}})
    return jsonify({"error": "zone file too large"}), 413


def main():
    try:
        config = ReceiverConfig.from_env()
    except ConfigError as e:
        configure_logging()
        logger.error("Failed to execute command", extra={"context": {"error": str(e)}})
        sys.exit(1)

    configure_logging(config.log_level)
    app = create_app(config)
    logger.info("Listening on...", extra={"context": {"address": config.listen_addr}})
    app.run(host=config.listen_host, port=config.listen_port, threaded=True)


if __name__ == '__main__':
    main()
