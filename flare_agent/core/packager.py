import os
import zipfile
import logging

logger = logging.getLogger("flare_agent.packager")

def zip_archive(zip_file_path: str, temp_dir: str, hostname: str) -> str:
    """
    Zips <temp_dir>/<hostname> into `zip_file_path`, entries rooted at <hostname>/.
    Errors are not caught: an archive that cannot be written cannot be shipped.
    """
    source = os.path.join(temp_dir, hostname)
    with zipfile.ZipFile(zip_file_path, "w", zipfile.ZIP_DEFLATED) as zipf:
        for root, dirs, files in os.walk(source):
            dirs.sort()
            for name in sorted(files):
                full_path = os.path.join(root, name)
                zipf.write(full_path, os.path.relpath(full_path, temp_dir))
    logger.info(f"Flare archive written to {zip_file_path}")
    return zip_file_path
