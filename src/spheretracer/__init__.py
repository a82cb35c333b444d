"""Monte Carlo sphere ray tracer built on Taichi.

Renders static scenes of spheres with diffuse, metal and glass materials by
stochastic path sampling, with a thin-lens camera for depth of field.

Subpackages:
    core: Vector/ray utilities, random sampling, integrator and render loop
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene storage, nearest-hit queries and the scene builder
    camera: Thin-lens camera ray generation
    preview: PPM/PNG image output
"""

__version__ = "0.1.0"
