"""
Constant body force, e.g. a mean pressure gradient driving the flow.
"""

from les_forcing.fields import ForceAccumulator
from les_forcing.providers.base import FlowState, ForceProvider


class BodyForce(ForceProvider):
    """Spatially uniform force added on the owned planes."""

    def __init__(self, fx: float = 0.0, fy: float = 0.0, fz: float = 0.0):
        self.fx = float(fx)
        self.fy = float(fy)
        self.fz = float(fz)

    @property
    def name(self) -> str:
        return "body_force"

    def apply(self, forces: ForceAccumulator, state: FlowState) -> None:
        forces.fx[:, :, 1:] += self.fx
        forces.fy[:, :, 1:] += self.fy
        forces.fz[:, :, 1:] += self.fz
