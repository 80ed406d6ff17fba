"""Global policy flags of a mapping pipeline."""

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt


class PipelinePolicy(BaseModel):
    """Policy switches consulted by the registry and the generator."""

    generate_if_not_found: StrictBool = Field(
        default=True,
        description="Generate a missing mapping on demand instead of failing.",
    )
    throw_on_unmappable: StrictBool = Field(
        default=False,
        description="Fail when a source field is claimed by no convention.",
    )
    max_recursion_depth: StrictInt = Field(
        default=50,
        description=(
            "Nested generation deeper than this fails. Values below 2 disable "
            "the check."
        ),
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def recursion_guard_enabled(self) -> bool:
        return self.max_recursion_depth > 1

    def exceeds_depth(self, depth: int) -> bool:
        """True when a generation at `depth` must be refused."""
        return self.recursion_guard_enabled and depth > self.max_recursion_depth
