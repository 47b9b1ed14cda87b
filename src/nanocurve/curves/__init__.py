"""The curve families.

Importing this package registers every descriptor variant.
"""

from nanocurve.curves.bezier import (
    BezierDescriptor,
    BezierEnd,
    BezierEndCoordinates,
    CubicBezier,
    PiecewiseBezier,
    PiecewiseBezierDescriptor,
    TranslatedPathDescriptor,
    TranslatedPiecewiseBezier,
    instantiate_piecewise_bezier,
)
from nanocurve.curves.chebyshev import (
    ChebyshevCoefficients,
    ChebyshevDescriptor,
    InterpolationDescriptor,
    PointsValues,
    PolynomialCurve,
)
from nanocurve.curves.circles import (
    CircleCurve,
    SphereConcentricCircle,
    SphereConcentricCircleDescriptor,
    TorusConcentricCircleDescriptor,
)
from nanocurve.curves.revolution import InterpolatedCurveDescriptor, RevolutionCurve
from nanocurve.curves.section import CurveDescriptor2D, Ellipse, Section, SuperEllipse
from nanocurve.curves.spirals import (
    SphereLikeSpiral,
    SphereLikeSpiralDescriptor,
    SphereOrientation,
    SpiralCylinder,
    SpiralCylinderDescriptor,
    TubeSpiral,
    TubeSpiralDescriptor,
)
from nanocurve.curves.torus import Torus, TorusDescriptor, TwistedTorus, TwistedTorusDescriptor
from nanocurve.curves.twist import (
    SuperTwist,
    SuperTwistDescriptor,
    Twist,
    TwistDescriptor,
    nb_turn_per_100_nt_to_omega,
    omega_to_nb_turn_per_100_nt,
    twist_to_omega,
)

__all__ = [
    "BezierDescriptor",
    "BezierEnd",
    "BezierEndCoordinates",
    "ChebyshevCoefficients",
    "ChebyshevDescriptor",
    "CircleCurve",
    "CubicBezier",
    "CurveDescriptor2D",
    "Ellipse",
    "InterpolatedCurveDescriptor",
    "InterpolationDescriptor",
    "PiecewiseBezier",
    "PiecewiseBezierDescriptor",
    "PointsValues",
    "PolynomialCurve",
    "RevolutionCurve",
    "Section",
    "SphereConcentricCircle",
    "SphereConcentricCircleDescriptor",
    "SphereLikeSpiral",
    "SphereLikeSpiralDescriptor",
    "SphereOrientation",
    "SpiralCylinder",
    "SpiralCylinderDescriptor",
    "SuperEllipse",
    "SuperTwist",
    "SuperTwistDescriptor",
    "Torus",
    "TorusConcentricCircleDescriptor",
    "TorusDescriptor",
    "TranslatedPathDescriptor",
    "TranslatedPiecewiseBezier",
    "TubeSpiral",
    "TubeSpiralDescriptor",
    "Twist",
    "TwistDescriptor",
    "TwistedTorus",
    "TwistedTorusDescriptor",
    "instantiate_piecewise_bezier",
    "nb_turn_per_100_nt_to_omega",
    "omega_to_nb_turn_per_100_nt",
    "twist_to_omega",
]
