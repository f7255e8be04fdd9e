from .cost_optimization import (
    COST_EFFECTIVE_FALLBACKS,
    CostOptimizationConfig,
    classify_task_complexity,
    estimate_cost_savings,
    generate_fallback_models,
    get_cost_optimization_config,
    should_use_auto_router,
)

__all__ = [
    "COST_EFFECTIVE_FALLBACKS",
    "CostOptimizationConfig",
    "classify_task_complexity",
    "estimate_cost_savings",
    "generate_fallback_models",
    "get_cost_optimization_config",
    "should_use_auto_router",
]
