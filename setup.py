from setuptools import setup, find_packages


install_requires = [
    "numpy",
    "pyteomics >= 4.5",
    "lxml",
    "psims >= 0.1.35",
    "pyarrow",
    "click",
]


extra_requires = {
    "net": [
        "pythonnet"
    ],
    "s3": [
        "s3fs"
    ],
    "test": [
        "pytest"
    ],
}


extra_requires['all'] = [dep for feature_reqs in extra_requires.values() for dep in feature_reqs]


def run_setup():
    with open("thermo_raw_parser/version.py") as version_file:
        version = None
        for line in version_file.readlines():
            if "version = " in line:
                version = line.split(" = ")[1].replace("\"", "").strip()
                break
        else:
            print("Cannot determine version")

    try:
        with open("README.rst") as readme_file:
            long_description = readme_file.read()
    except OSError as e:
        print(e)
        long_description = ''

    setup(
        name='thermo-raw-parser',
        version=version,
        packages=find_packages(),
        description='Convert Thermo RAW files to MGF, mzML, indexed mzML and Parquet',
        long_description=long_description,
        entry_points={
            'console_scripts': [
                "thermo-raw-parser = thermo_raw_parser.tools.conversion:main",
            ],
        },
        classifiers=[
            'Development Status :: 3 - Alpha',
            'Intended Audience :: Science/Research',
            'License :: OSI Approved :: Apache Software License',
            'Topic :: Scientific/Engineering :: Bio-Informatics'],
        python_requires=">=3.7",
        install_requires=install_requires,
        extras_require=extra_requires,
        include_package_data=True,
        zip_safe=False)


run_setup()
