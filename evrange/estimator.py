import dataclasses
from typing import Any, Callable, Dict, Mapping

from evrange import degradation_model, epa_model
from evrange.logging import log
from evrange.types import EstimateResponse
from evrange.validation import ValidationError


@dataclasses.dataclass(frozen=True)
class RangeModel:
    name: str
    distance_unit: str
    resolve_parameters: Callable[[Mapping[str, Any], bool], Any]  # Raises ValidationError on invalid input
    compute_range: Callable[[Any], Any]


MODELS: Dict[str, RangeModel] = {
    "degradation": RangeModel(name="degradation", distance_unit="km",
                              resolve_parameters=degradation_model.resolve_parameters,
                              compute_range=degradation_model.compute_range),
    "epa": RangeModel(name="epa", distance_unit="miles",
                      resolve_parameters=epa_model.resolve_parameters,
                      compute_range=epa_model.compute_range),
}


def estimate_range(model: str, raw: Mapping[str, Any], advanced: bool = False) -> EstimateResponse:
    """
    Validate the raw inputs and estimate the range with the chosen model. Invalid inputs never produce a numeric
    result; the reason is reported in the response instead.

    :param model: The name of the model to use ("degradation" or "epa")
    :param raw: The raw inputs, keyed by parameter name
    :param advanced: Whether the advanced parameters are in use (degradation model only)
    :return: The response holding either the result or the reason it could not be computed
    """
    range_model = MODELS.get(model)
    if range_model is None:
        return EstimateResponse(False, reason=f"Unknown model '{model}', expected one of {', '.join(MODELS)}",
                                result=None)

    try:
        params = range_model.resolve_parameters(raw, advanced)
    except ValidationError as e:
        log.debug(f"Rejected {model} estimate: {e}")
        return EstimateResponse(False, reason=str(e), result=None)

    result = range_model.compute_range(params)
    log.debug(f"Estimated {model} range for {params}: {result}")
    return EstimateResponse(True, reason="", result=result)
