import os
from typing import List, Tuple


# Function for reading received files into memory
def read_files(files: list) -> List[Tuple[str, bytes]]:
    uploads = []
    for file in files:
        filename = os.path.basename(file.filename or "") or f"image-{len(uploads) + 1}"
        uploads.append((filename, file.read()))

    return uploads
