"""
RegCM Post Vertical Level Processing

This module interpolates sigma-layer fields to a fixed list of pressure
levels. Every query walks the target levels in order and treats all grid
columns at once; within a column the result depends on which regime the
target pressure falls into (above the model top, between two layers, or
below the surface).

Columns with a non-positive surface pressure, and results that would read
an input already set to MISSING_VALUE, are written as MISSING_VALUE.
"""

from typing import Optional, Sequence, Tuple
import numpy as np

from ..core.config import DEFAULT_DTYPE, DEFAULT_PRESSURE_LEVELS, MISSING_VALUE
from ..core.core_types import GridDescriptor, validate_sigma
from ..core.exceptions import (
    GridShapeError, InterpolatorStateError, ParameterError,
    UnresolvablePressureBracketError, check_array_size,
)
from ..diagnostics.constants import bltop, gti, lrate, rgas, rgti, rovg, stdt

import logging
logger = logging.getLogger(__name__)

_ERRSTATE = dict(divide='ignore', invalid='ignore', over='ignore')

# ============================================================================
# Pressure-Level Interpolator
# ============================================================================

class PressureLevelInterpolator:
    """
    Interpolate sigma-layer fields onto pressure levels.

    The interpolator has two states. It is unconfigured until the grid
    dimensions are known, either from the constructor or from a single call
    to setup_dims, and ready afterwards. Queries on an unconfigured
    interpolator and a second setup raise InterpolatorStateError.

    Field arrays hold nz*nx*ny values, index k*nx*ny + i*ny + j with k = 0
    at the model top. They may also be passed shaped (nz, nx, ny).

    Args:
        pressure_levels: Target pressures [hPa], kept in the given order
        ptop: Model top pressure [hPa]
        nx, ny: Horizontal extent (pass together with sigma, or not at all)
        sigma: Sigma of the field levels, increasing towards the surface
    """

    def __init__(self, pressure_levels: Sequence[float], ptop: float,
                 nx: Optional[int] = None, ny: Optional[int] = None,
                 sigma: Optional[Sequence[float]] = None):
        levels = np.array(pressure_levels, dtype=DEFAULT_DTYPE).reshape(-1)
        if levels.size == 0:
            raise ParameterError("pressure_levels", "[]", "Need at least one target level")

        self.plevs = levels
        self.nplev = int(levels.size)
        self.ptop = float(ptop)

        self.nx = self.ny = self.nz = None
        self.sigma = None

        dims = (nx, ny, sigma)
        if all(d is not None for d in dims):
            self.setup_dims(nx, ny, len(sigma), sigma)
        elif any(d is not None for d in dims):
            raise ParameterError("nx/ny/sigma", str((nx, ny, sigma is not None)),
                                 "Pass all of nx, ny and sigma, or none of them")

    @classmethod
    def from_grid(cls, grid: GridDescriptor,
                  pressure_levels: Sequence[float] = DEFAULT_PRESSURE_LEVELS) -> "PressureLevelInterpolator":
        """Ready interpolator for fields on the grid's layer midpoints."""
        return cls(pressure_levels, grid.ptop, grid.nx, grid.ny, grid.sigma_mid)

    @property
    def is_ready(self) -> bool:
        return self.sigma is not None

    def setup_dims(self, nx: int, ny: int, nz: int, sigma: Sequence[float]) -> None:
        """
        Fix the grid dimensions and the sigma table. May be called once.

        Raises:
            InterpolatorStateError: If the dimensions were already set
            ParameterError: For non-positive sizes or an invalid sigma table
            GridShapeError: If sigma does not hold nz values
        """
        if self.is_ready:
            raise InterpolatorStateError("ready", "Grid dimensions can only be set once")
        if nx < 1 or ny < 1:
            raise ParameterError("nx/ny", f"{nx}x{ny}", "Horizontal extent must be positive")

        sigma = np.array(sigma, dtype=DEFAULT_DTYPE).reshape(-1)
        if sigma.size != nz:
            raise GridShapeError("sigma", nz, sigma.size)
        validate_sigma("sigma", sigma)

        self.nx, self.ny, self.nz = int(nx), int(ny), int(nz)
        self.km = self.nz - 1
        self.n2d = self.nx * self.ny
        self.sigma = sigma
        logger.debug(f"Interpolator ready: {self.nplev} levels, {self.nz} layers, {self.nx}x{self.ny} columns")

    # ------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------

    def _require_ready(self, routine: str) -> None:
        if not self.is_ready:
            raise InterpolatorStateError("unconfigured", f"Call setup_dims before {routine}")

    def _boundary_layer_top(self, default: int) -> int:
        """Highest level index with sigma below the boundary-layer top."""
        below = np.nonzero(self.sigma < bltop)[0]
        return int(below[-1]) if below.size else default

    def _columns(self, name: str, values) -> np.ndarray:
        arr = np.asarray(values, dtype=DEFAULT_DTYPE)
        check_array_size(name, arr.size, self.nz * self.n2d)
        return arr.reshape(self.nz, self.n2d)

    def _horizontal(self, name: str, values) -> Tuple[np.ndarray, Tuple[int, ...]]:
        arr = np.asarray(values, dtype=DEFAULT_DTYPE)
        check_array_size(name, arr.size, self.n2d)
        return arr.reshape(self.n2d), arr.shape

    def _target(self, name: str, out: Optional[np.ndarray], shape: Tuple[int, ...]):
        """Return (result, writable (rows, n2d) view of it)."""
        rows = int(np.prod(shape)) // self.n2d
        if out is None:
            result = np.empty(shape, dtype=DEFAULT_DTYPE)
            return result, result.reshape(rows, self.n2d)
        check_array_size(name, out.size, rows * self.n2d)
        view = out.reshape(rows, self.n2d)
        if not np.shares_memory(view, out):
            raise ParameterError(name, str(out.shape), "Output buffer must be contiguous")
        return out, view

    def _check_bracket(self, routine: str, plev: float, unresolved: np.ndarray) -> None:
        if unresolved.any():
            count = int(np.count_nonzero(unresolved))
            reason = f"Pressure level {plev} fits no regime in {count} column(s)"
            logger.error(f"{routine}: {reason}")
            raise UnresolvablePressureBracketError(routine, reason, [plev])

    def _missing(self, values: np.ndarray) -> np.ndarray:
        """MISSING_VALUE flags, any over the levels for 2-D (nz, n2d) input."""
        flags = values == MISSING_VALUE
        return flags.any(axis=0) if flags.ndim == 2 else flags

    def _sigma_bracket(self, sigp: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Layer k1 just above sigp in every column (0 if none), and k1 + 1."""
        k1 = np.count_nonzero(sigp[np.newaxis, :] > self.sigma[:, np.newaxis], axis=0) - 1
        k1 = np.maximum(k1, 0)
        return k1, np.minimum(k1 + 1, self.km)

    # ------------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------------

    def htsig(self, t, h, pstar, ht, descend: bool = False) -> np.ndarray:
        """
        Re-anchor the geopotential height of the lowest layer on the topography.

        Formula:
            h[km] = ht + (R/g) * t[km] * ln(pstar / p[km])

        By default only layer km is rewritten. With descend=True the layers
        above are rebuilt from it with the layer-mean hydrostatic step
        h[k] = h[k+1] + (R/g) * (t[k] + t[k+1]) / 2 * ln(p[k+1] / p[k]).

        Args:
            t: Temperature [K]
            h: Geopotential height [m], updated in place
            pstar: Surface pressure [hPa]
            ht: Topography height [m]
            descend: Also rebuild the layers above km

        Returns:
            h
        """
        self._require_ready('htsig')
        t = self._columns('t', t)
        h_cols = self._columns('h', h)
        if not np.shares_memory(h_cols, h) or not h_cols.flags.writeable:
            raise ParameterError("h", str(np.shape(h)), "Height must be a writable float64 array")
        pstar, _ = self._horizontal('pstar', pstar)
        ht, _ = self._horizontal('ht', ht)

        km = self.km
        t_missing = t == MISSING_VALUE
        valid = (pstar > 0.0) & ~self._missing(ht) & ~t_missing[km]
        with np.errstate(**_ERRSTATE):
            psig = np.multiply.outer(self.sigma, pstar - self.ptop) + self.ptop
            h_cols[km] = np.where(valid, ht + rovg * t[km] * np.log(pstar / psig[km]), MISSING_VALUE)
            if descend:
                for k in range(km - 1, -1, -1):
                    tbar = 0.5 * (t[k] + t[k + 1])
                    step = h_cols[k + 1] + rovg * tbar * np.log(psig[k + 1] / psig[k])
                    valid &= ~t_missing[k]
                    h_cols[k] = np.where(valid, step, MISSING_VALUE)
        return h

    def height(self, h, t, pstar, ht, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Geopotential height on the target pressure levels.

        Above the model top the lowest-level height is extended with the top
        layer temperature. Inside the column the height of the layer below
        is raised by the hydrostatic thickness using a log-pressure weighted
        mean temperature. Below the surface a standard lapse rate is applied
        from the boundary-layer top.

        Args:
            h: Geopotential height on sigma layers [m]
            t: Temperature on sigma layers [K]
            pstar: Surface pressure [hPa]
            ht: Topography height [m]
            out: Optional buffer with nplev*nx*ny values

        Returns:
            Heights [m] shaped (nplev,) + pstar.shape, or out

        Raises:
            UnresolvablePressureBracketError: If a target level fits no regime
        """
        self._require_ready('height')
        h = self._columns('h', h)
        t = self._columns('t', t)
        pstar, hshape = self._horizontal('pstar', pstar)
        ht, _ = self._horizontal('ht', ht)
        result, res = self._target('out', out, (self.nplev,) + hshape)

        km = self.km
        kbc = self._boundary_layer_top(0)
        cols = np.arange(self.n2d)
        valid = pstar > 0.0
        complete = valid & ~self._missing(h) & ~self._missing(t) & ~self._missing(ht)

        with np.errstate(**_ERRSTATE):
            psig = np.multiply.outer(self.sigma, pstar - self.ptop) + self.ptop
            tsfc = t[kbc] - lrate * (h[kbc] - ht)

            for ip, plev in enumerate(self.plevs):
                kt = np.count_nonzero(psig < plev, axis=0) - 1
                kt = np.where(kt < 0, 1, kt)
                kt = np.minimum(kt, km)
                kb = np.minimum(kt + 1, km)

                above_top = (plev > 0.0) & (plev <= psig[0])
                inside = (plev > psig[0]) & (plev < psig[km])
                below_ground = plev > pstar
                self._check_bracket('height', plev, valid & ~(above_top | inside | below_ground))

                p_kt = psig[kt, cols]
                p_kb = psig[kb, cols]
                dlnp = np.log(p_kb / p_kt)
                wt = np.log(p_kb / plev) / dlnp
                wb = np.log(plev / p_kt) / dlnp
                temp = 0.5 * (wt * t[kt, cols] + wb * t[kb, cols] + t[kb, cols])

                z_top = h[0] + rovg * t[0] * np.log(psig[0] / plev)
                z_inside = h[kb, cols] + rovg * temp * np.log(p_kb / plev)
                z_below = ht - tsfc / lrate * (1.0 - np.exp(-rgas * lrate * np.log(plev / pstar) * rgti))

                level = np.where(above_top, z_top, np.where(inside, z_inside, z_below))
                res[ip] = np.where(complete, level, MISSING_VALUE)

        return result

    def intlin(self, f, pstar, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Linear-in-sigma interpolation to the target pressure levels.

        Targets above the first layer take the first layer value and
        targets at or below the last layer take the last layer value.

        Args:
            f: Field on sigma layers
            pstar: Surface pressure [hPa]
            out: Optional buffer with nplev*nx*ny values

        Returns:
            Interpolated field shaped (nplev,) + pstar.shape, or out

        Raises:
            UnresolvablePressureBracketError: If a target level fits no regime
        """
        self._require_ready('intlin')
        f = self._columns('f', f)
        pstar, hshape = self._horizontal('pstar', pstar)
        result, res = self._target('out', out, (self.nplev,) + hshape)

        km = self.km
        sigma = self.sigma
        cols = np.arange(self.n2d)
        valid = pstar > 0.0
        fm = f == MISSING_VALUE

        with np.errstate(**_ERRSTATE):
            for ip, plev in enumerate(self.plevs):
                sigp = (plev - self.ptop) / (pstar - self.ptop)
                k1, k1p = self._sigma_bracket(sigp)

                above = sigp <= sigma[0]
                inside = (sigp > sigma[0]) & (sigp < sigma[km])
                below = sigp >= sigma[km]
                self._check_bracket('intlin', plev, valid & ~(above | inside | below))

                s1 = sigma[k1]
                wp = (sigp - s1) / (sigma[k1p] - s1)
                f_inside = (1.0 - wp) * f[k1, cols] + wp * f[k1p, cols]

                level = np.where(above, f[0], np.where(inside, f_inside, f[km]))
                gone = np.where(above, fm[0], np.where(inside, fm[k1, cols] | fm[k1p, cols], fm[km]))
                res[ip] = np.where(valid & ~gone, level, MISSING_VALUE)

        return result

    def intlog(self, f, pstar, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Log-in-sigma interpolation to the target pressure levels.

        Used for temperature. Between the last layer and the surface the
        last layer value is kept; below the surface the value at the
        boundary-layer top is extrapolated with a standard lapse rate.

        Between two layers the weight is ln(sigp / s1) / ln(s2 / s1). The
        log of sigma differences, ln(sigp - s1) / ln(s2 - s1), is not used:
        for any layer thinner than one sigma unit it gives weights above 1.
        Where s1 is 0 the weight is linear in sigma.

        Args:
            f: Field on sigma layers
            pstar: Surface pressure [hPa]
            out: Optional buffer with nplev*nx*ny values

        Returns:
            Interpolated field shaped (nplev,) + pstar.shape, or out

        Raises:
            UnresolvablePressureBracketError: If a target level fits no regime
        """
        self._require_ready('intlog')
        f = self._columns('f', f)
        pstar, hshape = self._horizontal('pstar', pstar)
        result, res = self._target('out', out, (self.nplev,) + hshape)

        km = self.km
        kbc = self._boundary_layer_top(km)
        sigma = self.sigma
        cols = np.arange(self.n2d)
        valid = pstar > 0.0
        fm = f == MISSING_VALUE

        with np.errstate(**_ERRSTATE):
            for ip, plev in enumerate(self.plevs):
                sigp = (plev - self.ptop) / (pstar - self.ptop)
                k1, k1p = self._sigma_bracket(sigp)

                above = sigp <= sigma[0]
                inside = (sigp > sigma[0]) & (sigp < sigma[km])
                lowest = (sigp >= sigma[km]) & (sigp <= 1.0)
                below_ground = sigp > 1.0
                self._check_bracket('intlog', plev,
                                    valid & ~(above | inside | lowest | below_ground))

                s1 = sigma[k1]
                s2 = sigma[k1p]
                # sigma 0 has no logarithm; fall back to a linear weight there
                wp = np.where(s1 > 0.0,
                              np.log(sigp / s1) / np.log(s2 / s1),
                              (sigp - s1) / (s2 - s1))
                f_inside = (1.0 - wp) * f[k1, cols] + wp * f[k1p, cols]
                f_below = f[kbc] * np.exp(-rgas * lrate * np.log(sigp / sigma[kbc]) * rgti)

                level = np.where(above, f[0],
                        np.where(inside, f_inside,
                        np.where(lowest, f[km], f_below)))
                gone = np.where(above, fm[0],
                       np.where(inside, fm[k1, cols] | fm[k1p, cols],
                       np.where(lowest, fm[km], fm[kbc])))
                res[ip] = np.where(valid & ~gone, level, MISSING_VALUE)

        return result

    def slpres(self, h, t, pstar, ht, tg,
               out1: Optional[np.ndarray] = None,
               out2: Optional[np.ndarray] = None) -> Tuple[np.ndarray, np.ndarray]:
        """
        Sea-level pressure by two reductions.

        Formula:
            tsfc = t[kbc] - lrate * (h[kbc] - ht)
            slp1 = pstar * exp(-g / (R * lrate) * ln(1 - ht * lrate / tsfc))
            slp2 = pstar * exp(g * ht / (R * (tg + 288.15) / 2))

        Args:
            h: Geopotential height on sigma layers [m]
            t: Temperature on sigma layers [K]
            pstar: Surface pressure [hPa]
            ht: Topography height [m]
            tg: Ground temperature [K]
            out1, out2: Optional buffers with nx*ny values

        Returns:
            (slp1, slp2) in hPa, each shaped like pstar
        """
        self._require_ready('slpres')
        h = self._columns('h', h)
        t = self._columns('t', t)
        pstar, hshape = self._horizontal('pstar', pstar)
        ht, _ = self._horizontal('ht', ht)
        tg, _ = self._horizontal('tg', tg)
        slp1, res1 = self._target('out1', out1, hshape)
        slp2, res2 = self._target('out2', out2, hshape)

        kbc = self._boundary_layer_top(self.km)
        valid = (pstar > 0.0) & ~self._missing(ht)
        valid1 = valid & (t[kbc] != MISSING_VALUE) & (h[kbc] != MISSING_VALUE)
        valid2 = valid & ~self._missing(tg)

        with np.errstate(**_ERRSTATE):
            tsfc = t[kbc] - lrate * (h[kbc] - ht)
            lapse = pstar * np.exp(-gti / (rgas * lrate) * np.log(1.0 - ht * lrate / tsfc))
            ground = pstar * np.exp(gti * ht / (rgas * 0.5 * (tg + stdt)))
            res1[0] = np.where(valid1, lapse, MISSING_VALUE)
            res2[0] = np.where(valid2, ground, MISSING_VALUE)

        return slp1, slp2


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    'PressureLevelInterpolator',
]
