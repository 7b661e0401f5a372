"""
Example: Post-processing a RegCM Time Slice

This example builds a small synthetic domain, computes the sigma-layer
diagnostics and interpolates them to pressure levels.
"""

import numpy as np

import regcm_post as rp

# ============================================================================
# Example 1: List Available Diagnostic Variables
# ============================================================================

print("="*70)
print("Example 1: List Available Diagnostic Variables")
print("="*70)

from regcm_post.diagnostics import get_diagnostic_metadata, get_required_fields

for var_name in rp.list_available_diagnostics():
    metadata = get_diagnostic_metadata(var_name)
    print(f"  {var_name:4s} {metadata['long_name']:30s} [{metadata['units']}]"
          f"  needs {sorted(get_required_fields([var_name]))}")

# ============================================================================
# Example 2: Build a Grid and Synthetic Fields
# ============================================================================

print("\n" + "="*70)
print("Example 2: Synthetic Domain")
print("="*70)

nx, ny = 6, 5
sigma_full = [0.0, 0.1, 0.25, 0.45, 0.65, 0.8, 0.9, 0.96, 0.99, 1.0]
zs = np.linspace(0.0, 1200.0, nx * ny)

grid = rp.GridDescriptor(
    nx=nx, ny=ny, ptop=50.0, sigma_full=sigma_full, ds=50000.0,
    xmap=np.ones(nx * ny), dmap=np.ones(nx * ny), zs=zs,
)
shape = (grid.nk,) + grid.horizontal_shape

ps = 1013.25 * np.exp(-zs / 8000.0).reshape(grid.horizontal_shape)
t = np.broadcast_to((215.0 + 75.0 * grid.sigma_mid)[:, None, None], shape).copy()
qv = np.broadcast_to((1.0e-5 + 1.2e-2 * grid.sigma_mid ** 4)[:, None, None], shape).copy()
i, j = np.meshgrid(np.arange(nx), np.arange(ny), indexing='ij')
u = np.broadcast_to(10.0 - 0.5 * j, shape).copy()
v = np.broadcast_to(2.0 + 0.3 * i, shape).copy()

print(f"\n{grid.nx}x{grid.ny} columns, {grid.nk} layers, top at {grid.ptop} hPa")
print(f"Surface pressure range: {ps.min():.1f} - {ps.max():.1f} hPa")

# ============================================================================
# Example 3: Sigma-Layer Diagnostics
# ============================================================================

print("\n" + "="*70)
print("Example 3: Sigma-Layer Diagnostics")
print("="*70)

calc = rp.AtmosphereCalculator(grid)
derived = calc.compute(ps, t, qv, u, v)

print(f"\nLowest layer height at (0, 0): {derived.field('ht')[-1, 0, 0]:.1f} m")
print(f"Lowest layer RH range: {derived.field('rh')[-1].min():.2f} - {derived.field('rh')[-1].max():.2f}")
print(f"Vorticity at (0, 0): {derived.field('vr')[0, 0, 0]:.2e} s-1")

# ============================================================================
# Example 4: Full Time Slice
# ============================================================================

print("\n" + "="*70)
print("Example 4: Full Time Slice")
print("="*70)

rp.setup_logging(level="INFO")

levels = [850.0, 700.0, 500.0, 300.0, 200.0]
tg = t[-1] + 1.0
result = rp.process_time_slice(grid, ps, t, qv, u, v, pressure_levels=levels, tg=tg)

print(result.pressure)
print("\n500 hPa height:")
print(result.pressure['ht'].sel(plev=500.0).values.round(1))
print("\nSea level pressure (lapse-rate reduction):")
print(result.surface['slp1'].values.round(1))
