"""Models describing declarative lazy pipelines and their run reports."""

from typing import Any, List, Literal, Optional
from pydantic import BaseModel, Field, model_validator, ConfigDict


OperationType = Literal[
    "map", "filter", "take", "skip", "chunk",
    "take_while", "skip_while", "enumerate", "unique",
]
TerminalType = Literal["to_array", "count", "first", "last", "sum"]

# Operations that need a registered callback
CALLBACK_OPERATIONS = {"map", "filter", "take_while", "skip_while"}


class OperationSpec(BaseModel):
    """One step of a pipeline, applied in list order."""
    type: OperationType = Field(..., description="Operator to apply")
    function: Optional[str] = Field(
        None,
        description="Registered function name (callback for map/filter/take_while/skip_while, key for unique)"
    )
    count: int = Field(
        0,
        description="Element count for take/skip"
    )
    size: Optional[int] = Field(
        None,
        description="Group size for chunk"
    )

    @model_validator(mode='after')
    def validate_operation_arguments(self):
        """Enforce the arguments each operation type needs."""
        if self.type in CALLBACK_OPERATIONS and not self.function:
            raise ValueError(f"{self.type} operation requires a function name")
        if self.type == "chunk" and (self.size is None or self.size <= 0):
            raise ValueError("chunk operation requires a size greater than 0")
        return self


class PipelineSpec(BaseModel):
    """Ordered operations plus the terminal consumer that runs them."""
    operations: List[OperationSpec] = Field(
        default_factory=list,
        description="Operations applied lazily, in order"
    )
    terminal: TerminalType = Field(
        "to_array",
        description="Terminal consumer that triggers the traversal"
    )
    limit: Optional[int] = Field(
        None,
        description="Optional bound appended as a final take()",
        ge=0
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "operations": [
                    {"type": "filter", "function": "is_even"},
                    {"type": "map", "function": "square"},
                ],
                "terminal": "to_array",
                "limit": 5
            }
        }
    )


class PerformanceInfo(BaseModel):
    """Timing and memory figures for one measured operation."""
    operation: str = Field(..., description="Measured operation name")
    execution_time_ms: float = Field(..., description="Wall time in milliseconds", ge=0)
    memory_usage_mb: Optional[float] = Field(
        None,
        description="Peak traced memory in MB (None when memory tracking is off)",
        ge=0
    )
    success: bool = Field(True, description="Whether the operation completed")
    error: Optional[str] = Field(None, description="Error message when it did not")


class PipelineResult(BaseModel):
    """Result of running a PipelineSpec."""
    result: Any = Field(None, description="Value returned by the terminal consumer")
    terminal: TerminalType = Field(..., description="Terminal consumer that ran")
    operations_applied: List[str] = Field(
        default_factory=list,
        description="Operation types in the order they were applied"
    )
    performance: PerformanceInfo
