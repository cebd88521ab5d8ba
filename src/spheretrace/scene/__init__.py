"""Scene module: sphere storage, scene building and the cover scene.

Components:
    hit_list: Sphere storage in Taichi fields and closest-hit queries
    manager: SceneManager coordinating spheres and materials
    random_scene: Procedural "many spheres" scene and its camera

Scene data is organized for parallel access:
    - Structure-of-Arrays layout for sphere data
    - Contiguous material id arrays
"""

from .hit_list import (
    MAX_SPHERES,
    add_sphere,
    clear_hit_list,
    get_sphere,
    get_sphere_count,
    hit_scene,
)
from .manager import MaterialInfo, SceneConfig, SceneManager, SphereInfo
from .random_scene import RandomSceneParams, create_random_scene, default_camera

__all__ = [
    # Hit list
    "MAX_SPHERES",
    "add_sphere",
    "clear_hit_list",
    "get_sphere",
    "get_sphere_count",
    "hit_scene",
    # Manager
    "SceneManager",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    # Cover scene
    "RandomSceneParams",
    "create_random_scene",
    "default_camera",
]
