"""
Orchestration wiring for the function-calling capability.

Factory functions create every component with its dependencies injected.
Hosts call ``create_wiring(settings)`` once and keep the returned objects
for the life of the process; nothing here is global.
"""

from typing import Any, Dict, Optional

import structlog

from airframe import AirframeClient, BackendKind, EndpointSpec

from jeeves_capability_function_calling.capabilities import (
    CapabilityCatalog,
    register_all_capabilities,
)
from jeeves_capability_function_calling.config.settings import FunctionCallingSettings
from jeeves_capability_function_calling.invocation.dispatcher import Dispatcher
from jeeves_capability_function_calling.orchestration.conversation import ConversationOrchestrator
from jeeves_capability_function_calling.orchestration.model_resource import ModelResource
from jeeves_capability_function_calling.orchestration.synthesizer import ResponseSynthesizer


def get_logger() -> Any:
    """Get logger for wiring module."""
    return structlog.get_logger("orchestration.wiring")


def create_endpoint(settings: FunctionCallingSettings) -> EndpointSpec:
    """Endpoint description for the configured backend."""
    base_url = settings.llm_base_url.rstrip("/")
    # Hosts are commonly configured with the OpenAI-style ".../v1" URL
    if base_url.endswith("/v1"):
        base_url = base_url[: -len("/v1")]
    metadata = {"api_key": settings.llm_api_key} if settings.llm_api_key else {}
    return EndpointSpec(
        name=settings.llm_backend,
        base_url=base_url,
        backend_kind=BackendKind(settings.llm_backend),
        metadata=metadata,
    )


def create_model_resource(
    settings: FunctionCallingSettings,
    *,
    client: Optional[AirframeClient] = None,
    logger: Optional[Any] = None,
) -> ModelResource:
    return ModelResource(
        create_endpoint(settings),
        settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        client=client,
        logger=logger,
    )


def create_catalog(
    settings: FunctionCallingSettings,
    logger: Optional[Any] = None,
) -> CapabilityCatalog:
    catalog = CapabilityCatalog(logger=logger)
    register_all_capabilities(catalog, settings, logger=logger)
    return catalog


def create_orchestrator(
    *,
    model: ModelResource,
    catalog: CapabilityCatalog,
    settings: FunctionCallingSettings,
    logger: Optional[Any] = None,
) -> ConversationOrchestrator:
    """
    Create a conversation orchestrator over ``model``.

    The orchestrator is gated on the model's status channel, so messages
    sent before ``model.initialize()`` reaches Ready are refused.
    """
    return ConversationOrchestrator(
        generator=model,
        catalog=catalog,
        dispatcher=Dispatcher(catalog, logger=logger),
        synthesizer=ResponseSynthesizer(
            model,
            catalog,
            timeout=settings.synthesis_timeout_seconds,
            include_diagnostics=settings.include_diagnostics,
            logger=logger,
        ),
        settings=settings,
        model_status=model.status,
        logger=logger,
    )


def create_wiring(
    settings: Optional[FunctionCallingSettings] = None,
    logger: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Create the complete component set for one host.

    Returns:
        Dict with wiring components:
        - settings: FunctionCallingSettings in effect
        - catalog: CapabilityCatalog with built-in capabilities registered
        - model: ModelResource (call ``await model.initialize()`` before use)
        - orchestrator: ConversationOrchestrator
    """
    if logger is None:
        logger = get_logger()
    settings = settings or FunctionCallingSettings.from_env()

    logger.info(
        "creating_function_calling_wiring",
        backend=settings.llm_backend,
        model=settings.llm_model,
    )

    catalog = create_catalog(settings, logger=logger)
    model = create_model_resource(settings, logger=logger)
    orchestrator = create_orchestrator(model=model, catalog=catalog, settings=settings, logger=logger)

    return {
        "settings": settings,
        "catalog": catalog,
        "model": model,
        "orchestrator": orchestrator,
    }
