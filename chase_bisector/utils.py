import numpy as np
import astropy.io.fits as fits
from astropy.time import Time


def get_wavelength_axis(hdr: fits.Header) -> np.ndarray:
    """
    Generate wavelength axis from FITS header.
    
    Uses FITS convention: lambda(i) = CRVAL3 + (i+1-CRPIX3)*CDELT3
    
    Parameters
    ----------
    hdr : astropy.io.fits.Header
        FITS header with WCS information    
    Returns
    -------
    wvl : np.ndarray
        Wavelength array (Å)
    """
    crval3 = float(hdr["CRVAL3"])
    cdelt3 = float(hdr["CDELT3"])
    crpix3 = float(hdr.get("CRPIX3", 1.0))
    n_spec = int(hdr["NAXIS3"])
    i = np.arange(n_spec, dtype=np.float64)
    return crval3 + ((i + 1.0) - crpix3) * cdelt3


def get_obstime(hdr: fits.Header) -> Time:
    obstime_str = hdr['DATE_OBS'].replace('T', ' ')
    return Time(obstime_str)
