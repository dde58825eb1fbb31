import os
import logging
import concurrent.futures as _futures

import numpy as np
from astropy.io import fits

from .config import BisectorConfig
from .datamodel import SpecCube
from .utils import get_obstime
from .velocity_los import compute_los_velocity_cube

logger = logging.getLogger(__name__)


class BisectorPipeline:
    def __init__(self, data_dir: str, num_workers: int = 8, config: BisectorConfig = None, hdu_index: int = 1):
        self.data_dir = data_dir
        self.num_workers = num_workers
        self.config = config if config is not None else BisectorConfig()
        self.hdu_index = hdu_index

        self.hdrs = []
        self.cubes = []
        self.los_vs = []

    def load_data(self, sort_by_time: bool = True):
        data_dir = os.path.expanduser(self.data_dir)
        items = []

        for file in sorted(os.listdir(data_dir)):
            if file.endswith(".fits"):
                filepath = os.path.join(data_dir, file)
                with fits.open(filepath) as rsm:
                    hdr = rsm[self.hdu_index].header.copy()
                    data = np.array(rsm[self.hdu_index].data, dtype=np.float64)
                items.append((hdr, SpecCube.from_hdu(hdr, data, name=file)))

        if sort_by_time:
            items.sort(key=lambda x: get_obstime(x[0]))

        self.hdrs = [hdr for hdr, _ in items]
        self.cubes = [cube for _, cube in items]
        logger.info(f"Loaded {len(self.cubes)} FITS files from {self.data_dir}")

    def _header_meta(self, hdr):
        keys = ["DATE_OBS", "WAVE_LEN", "CRVAL3", "CDELT3", "CRPIX3", "BIN"]
        return {k: hdr.get(k) for k in keys if k in hdr}

    def compute_los(self):
        def _worker(args):
            hdr, spec = args
            vel_los = compute_los_velocity_cube(spec.cube, spec.wavelength, self.config)
            vel_los.meta.update(self._header_meta(hdr))
            vel_los.meta["name"] = spec.name
            return vel_los

        with _futures.ThreadPoolExecutor(max_workers=self.num_workers) as executor:
            self.los_vs = list(executor.map(_worker, zip(self.hdrs, self.cubes)))
        logger.info(f"Computed bisector LOS velocities for {len(self.los_vs)} frames")
        return self.los_vs

    def run(self, sort_by_time: bool = True):
        self.load_data(sort_by_time=sort_by_time)
        return self.compute_los()
