import argparse
import json
import threading
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from evrange.estimator import MODELS, estimate_range
from evrange.logging import log
from evrange.types import EstimateResponse
from evrange.webservice import RangeService


def parse_param_value(value: str) -> Any:
    """
    Parse a parameter value given on the command line. Booleans and numbers are passed on as such, anything else is
    passed on as a string to be validated by the model.
    """
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    try:
        return json.loads(value)
    except ValueError:
        return value


def parse_params(pairs: List[str]) -> Dict[str, Any]:
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected a parameter of the form key=value, got '{pair}'")
        params[key] = parse_param_value(value)
    return params


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Estimate the driving range of an electric vehicle")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the range estimation webservice")
    serve.add_argument("--host", help="The host address to bind the webservice to", default="0.0.0.0")
    serve.add_argument("--port", help="The port to use for the webservice", type=int, default=5042)

    estimate = subparsers.add_parser("estimate", help="Estimate the range once and print the result as JSON")
    estimate.add_argument("--model", help="The model to use", choices=sorted(MODELS), default="degradation")
    estimate.add_argument("--advanced", help="Use the advanced parameters (degradation model only)",
                          action="store_true")
    estimate.add_argument("--param", help="A model parameter given as key=value (can be repeated)",
                          action="append", default=[])
    return parser


def run_estimate(model: str, pairs: List[str], advanced: bool) -> EstimateResponse:
    return estimate_range(model, parse_params(pairs), advanced)


def serve(host: str, port: int) -> None:
    webservice = RangeService(host=host, port=port)
    webservice.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        log.warning("Quitting due to keyboard interrupt")
        raise
    finally:
        webservice.stop()
        log.info("Web service shut down")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "serve":
        serve(args.host, args.port)
        return 0

    try:
        response = run_estimate(args.model, args.param, args.advanced)
    except ValueError as e:
        parser.error(str(e))
    print(json.dumps(asdict(response), indent=2, ensure_ascii=False))
    return 0 if response.success else 1


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        pass
