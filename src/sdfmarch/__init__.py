"""Real-time raymarching renderer for signed distance field scenes.

This package renders scenes described by analytic signed distance fields
using sphere tracing on the GPU with Taichi:
- Primitives (sphere, box, plane, torus, capsule) with optional animation
- Union, smooth union, subtraction and intersection
- Directional lights with hard or soft shadows, ambient occlusion and fog
- Checker and triplanar texturing
- Supersampling and NumPy post-processing (vignette, contrast, gamma)

Subpackages:
    core: Rays, marcher, shader, frame driver and animation driver
    geometry: Distance functions and composition operators
    materials: Material table and texture sampling
    scene: Scene tree, scene compilation and the demo scene
    camera: Look-at pinhole camera
    preview: Post-processing, export and Matplotlib preview

Modules that allocate Taichi fields must be imported after ``ti.init()``.
"""

__version__ = "0.1.0"
