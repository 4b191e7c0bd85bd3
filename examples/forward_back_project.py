"""Example of forward and back projection with a symmetry-reduced matrix.

A small cylindrical scanner is set up together with a matching image. The
projectors share one projection matrix, of which only the rows of basic
bins are computed; all other rows follow from the scanner symmetries.
"""

import numpy as np
import symproj
from symproj.util.log import log_symmetries, setup_log

setup_log(log_level='info')

# Scanner with 5 rings and 32 views over 180 degrees, time-of-flight with
# 3 timing positions of 60 mm.
proj_data_info = symproj.projdata.CylindricalProjDataInfo(
    num_rings=5, ring_spacing=4.0, det_radius=150.0, num_views=32,
    num_tangential_poss=41, tangential_spacing=6.0,
    num_timing_poss=3, timing_spacing=60.0, timing_fwhm=80.0)

# Image with one plane per ring and one between each pair of rings
image_geometry = symproj.discr.ImageGeometry.from_proj_data_info(
    proj_data_info)

# Forward projection is the operator, back projection its adjoint
proj_op = symproj.recon.ProjectionOperator(image_geometry, proj_data_info,
                                           num_threads=4)
log_symmetries(proj_op.proj_matrix.symmetries)

# Uniform cylinder of radius 60 mm
z, y, x = np.meshgrid(*[np.arange(n) - (n - 1) / 2.0
                        for n in image_geometry.shape], indexing='ij')
voxel_size = image_geometry.voxel_size
radius = np.hypot(x * voxel_size[2], y * voxel_size[1])
phantom = image_geometry.element((radius < 60.0).astype(float))

proj_data = proj_op(phantom)
backproj = proj_op.adjoint(proj_data)

print('total projected activity: {:.1f}'.format(proj_data.asarray().sum()))
print('cache: {}'.format(proj_op.proj_matrix.cache_info()))

# Dot-product test of the adjoint
lhs = np.dot(proj_data.asarray(), proj_data.asarray())
rhs = np.vdot(phantom.asarray(), backproj.asarray())
print('<Ax, Ax> = {:.6g}, <x, A^T A x> = {:.6g}'.format(lhs, rhs))
