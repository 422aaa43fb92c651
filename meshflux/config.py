"""
Build a simulation from a YAML scene.

Example scene::

    kind: pattern
    materials:
      Gold: gold.txt
      Vacuum: {omega: [1.0e+14, 2.0e+14], values: [[1, 0], [1, 0]], type: scalar}
    lattice: {x_len: 1.0e-06, y_len: 1.0e-06, angle: 90}
    layers:
      - {name: GoldBottom, thickness: 0, material: Gold}
      - name: Gap
        thickness: 1.0e-07
        material: Vacuum
        patterns:
          - {shape: circle, material: Gold, center: [0, 0], radius: 2.0e-07}
      - {name: VacuumTop, thickness: 0, material: Vacuum}
    source: GoldBottom
    probe: VacuumTop
    num_of_g: 25
    options: {polarization: both, truncation: circular, num_threads: 4}
    integration:
      kx: {points: 50, end: 0, symmetric: true}
      ky: {points: 50, end: 0, symmetric: true}

Relative material paths are resolved against the directory of the scene file.
"""
import logging
import os
from typing import Any, Dict, Mapping

from meshflux.errors import ConfigurationError
from meshflux.solve.options import SimulationOptions
from meshflux.solve.simulation import Simulation, SimulationGrating, SimulationPattern, SimulationPlanar

logger = logging.getLogger(__name__)

SIMULATION_KINDS = {
    'planar': SimulationPlanar,
    'grating': SimulationGrating,
    'pattern': SimulationPattern,
}


def _load_scene(path: str) -> Dict[str, Any]:
    import yaml  # type: ignore
    if not os.path.isfile(path):
        raise FileNotFoundError(f"{path} not exists!")
    with open(path, 'r', encoding='utf-8') as f:
        scene = yaml.safe_load(f)
    if not isinstance(scene, dict):
        raise ConfigurationError(f"{path}: scene must be a mapping")
    return scene


def load_config(path: str) -> Simulation:
    """
    Read a YAML scene and return a configured (not yet initialised) simulation.

    :param path: Path to the scene file
    """
    scene = _load_scene(path)
    base = os.path.dirname(os.path.abspath(path))
    return build_simulation(scene, base)


def build_simulation(scene: Mapping[str, Any], base: str = '.') -> Simulation:
    """
    Build a simulation from an already parsed scene mapping.

    :param scene: Scene mapping, same keys as the YAML file
    :param base: Directory relative material paths are resolved against
    """
    kind = str(scene.get('kind', 'planar')).lower()
    if kind not in SIMULATION_KINDS:
        raise ConfigurationError(f"kind should be one of {', '.join(SIMULATION_KINDS)}, got {kind}")
    sim = SIMULATION_KINDS[kind]()

    options = dict(scene.get('options') or {})
    num_threads = options.pop('num_threads', None)
    sim.options = SimulationOptions.from_dict(options)
    if num_threads is not None:
        sim.set_thread(num_threads)

    for name, entry in (scene.get('materials') or {}).items():
        _add_material(sim, name, entry, base)

    if 'lattice' in scene:
        _set_lattice(sim, scene['lattice'])

    for entry in scene.get('layers') or []:
        _add_layer(sim, entry)

    if 'source' in scene:
        sim.set_source_layer(scene['source'])
    if 'probe' in scene:
        sim.set_probe_layer(scene['probe'])
    if 'num_of_g' in scene:
        sim.set_num_of_g(int(scene['num_of_g']))

    _set_integration(sim, scene.get('integration') or {})
    logger.info("built %s simulation with %d materials and %d layers",
                kind, len(sim.materials), len(sim.structure))
    return sim


def _add_material(sim: Simulation, name: str, entry: Any, base: str):
    if isinstance(entry, str):
        path = entry if os.path.isabs(entry) else os.path.join(base, entry)
        sim.add_material(name, path)
    elif isinstance(entry, Mapping):
        if 'path' in entry:
            _add_material(sim, name, entry['path'], base)
            return
        try:
            sim.add_material_from_values(name, entry['omega'], entry['values'], entry.get('type', 'scalar'))
        except KeyError as err:
            raise ConfigurationError(f"Material {name}: missing key {err.args[0]}") from None
    else:
        raise ConfigurationError(f"Material {name}: expected a path or a mapping")


def _set_lattice(sim: Simulation, lattice: Mapping[str, Any]):
    if isinstance(sim, SimulationGrating):
        sim.set_lattice(float(lattice['period']))
    elif isinstance(sim, SimulationPattern):
        sim.set_lattice(float(lattice['x_len']), float(lattice['y_len']), float(lattice.get('angle', 90.0)))
    else:
        raise ConfigurationError("A planar simulation has no lattice")


def _add_layer(sim: Simulation, entry: Mapping[str, Any]):
    try:
        name, material = entry['name'], entry['material']
    except KeyError as err:
        raise ConfigurationError(f"Layer entry missing key {err.args[0]}") from None
    sim.add_layer(name, float(entry.get('thickness', 0.0)), material)
    for pattern in entry.get('patterns') or []:
        _add_pattern(sim, name, pattern)


def _add_pattern(sim: Simulation, layer: str, entry: Mapping[str, Any]):
    shape = str(entry.get('shape', '')).lower()
    material = entry['material']
    if shape == 'grating':
        if not isinstance(sim, SimulationGrating):
            raise ConfigurationError("grating patterns need kind: grating")
        sim.set_layer_pattern_grating(layer, material, float(entry['center']), float(entry['width']))
        return
    if not isinstance(sim, SimulationPattern):
        raise ConfigurationError(f"{shape} patterns need kind: pattern")
    center = tuple(entry['center'])
    angle = float(entry.get('angle', 0.0))
    if shape == 'rectangle':
        sim.set_layer_pattern_rectangle(layer, material, center, angle, tuple(entry['widths']))
    elif shape == 'circle':
        sim.set_layer_pattern_circle(layer, material, center, float(entry['radius']))
    elif shape == 'ellipse':
        sim.set_layer_pattern_ellipse(layer, material, center, angle, tuple(entry['half_widths']))
    elif shape == 'polygon':
        sim.set_layer_pattern_polygon(layer, material, center, angle, entry['vertices'])
    else:
        raise ConfigurationError(f"Unknown pattern shape: {shape}")


def _set_integration(sim: Simulation, integration: Mapping[str, Any]):
    for axis in ('kx', 'ky'):
        if axis not in integration:
            continue
        entry = integration[axis]
        setter = getattr(sim, f"set_{axis}_integral_sym" if entry.get('symmetric') else f"set_{axis}_integral")
        setter(int(entry['points']), float(entry.get('end', 0.0)))
    if 'k_parallel' in integration:
        if not isinstance(sim, SimulationPlanar):
            raise ConfigurationError("k_parallel integration needs kind: planar")
        entry = integration['k_parallel']
        sim.set_k_parallel_integral(float(entry['end']))
        if 'method' in entry:
            if str(entry['method']).lower() in ('quadgk', 'gauss_kronrod'):
                sim.opt_use_quadgk()
            else:
                sim.opt_use_quadgl(int(entry.get('degree', sim.options.degree)))
