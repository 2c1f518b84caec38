import threading
from typing import Any, Callable, Mapping

from flask import Flask, jsonify, Response, request
import waitress
from flask_cors import CORS

from evrange.constants import CHARGING_BEHAVIOR_DEGRADATION, DRIVING_STYLE_CONSUMPTION, TERRAIN_PRESET_FACTORS, \
    CLIMATE_USAGE_FACTORS, TERRAIN_TYPE_FACTORS
from evrange.degradation_model import derive_defaults, resolve_capacity
from evrange.estimator import MODELS, estimate_range
from evrange.logging import log
from evrange.types import EstimateResponse
from evrange.validation import ValidationError
from dataclasses import asdict


class RangeService:
    def __init__(self, host: str, port: int,
                 estimator: Callable[[str, Mapping[str, Any], bool], EstimateResponse] = estimate_range) -> None:
        self._estimator = estimator

        # Create Flask application
        self._service = Flask("evrange")

        # Enable cross-site requests
        CORS(self._service)

        # Add API endpoints
        self._service.add_url_rule("/range/<model>", "range", self.range, methods=["POST"])
        self._service.add_url_rule("/defaults", "defaults", self.defaults, methods=["GET"])
        self._service.add_url_rule("/presets", "presets", self.presets, methods=["GET"])
        self._server = waitress.create_server(self._service, host=host, port=port, threads=1)
        self._server_thread = threading.Thread(target=self._server.run, name="server_thread", daemon=True)

    @property
    def endpoint(self) -> str:
        return f"http://{self._server.effective_host}:{self._server.effective_port}"

    @property
    def app(self) -> Flask:
        return self._service

    def start(self) -> None:
        self._server_thread.start()
        log.info(f"Started webservice at {self.endpoint}")

    def stop(self) -> None:
        self._server.close()

    def __enter__(self) -> "RangeService":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()

    def range(self, model: str) -> Response:
        """
        API endpoint to estimate the range with one of the models
        """
        if model not in MODELS:
            return Response(f"Unknown model '{model}'", 404)

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return Response("Request body must be a JSON object", 400)
        parameters = data.get("parameters", {})
        advanced = data.get("advanced", False)
        if not isinstance(parameters, dict) or not isinstance(advanced, bool):
            return Response("Expected 'parameters' to be an object and 'advanced' to be a boolean", 400)

        response = self._estimator(model, parameters, advanced)
        return jsonify(dict(asdict(response), distance_unit=MODELS[model].distance_unit))

    def defaults(self) -> Response:
        """
        API endpoint to query the consumption and terrain factor derived from a battery capacity
        """
        try:
            capacity = resolve_capacity(request.args)
        except ValidationError as e:
            return Response(f"Unable to parse request parameters: '{e}'", 400)
        return jsonify(asdict(derive_defaults(capacity)))

    def presets(self) -> Response:
        """
        API endpoint to query the named presets and lookup tables of both models
        """
        return jsonify(dict(charging_behavior=CHARGING_BEHAVIOR_DEGRADATION,
                            driving_style=DRIVING_STYLE_CONSUMPTION,
                            terrain=TERRAIN_PRESET_FACTORS,
                            climate_usage=CLIMATE_USAGE_FACTORS,
                            terrain_type=TERRAIN_TYPE_FACTORS))
