#!/usr/bin/env python3
"""Build script for PyPP.

This script helps install, test, and package the preprocessor.
"""

import sys
import subprocess
import argparse
import shutil
from pathlib import Path
from typing import List, Optional


def run_command(cmd: List[str], cwd: Optional[Path] = None, check: bool = True) -> subprocess.CompletedProcess:
    """Run a command and return the result."""
    print(f"Running: {' '.join(cmd)}")
    if cwd:
        print(f"  in directory: {cwd}")

    try:
        result = subprocess.run(cmd, cwd=cwd, check=check, capture_output=True, text=True)
        if result.stdout:
            print(result.stdout)
        return result
    except subprocess.CalledProcessError as e:
        print(f"Error running command: {e}")
        if e.stdout:
            print(f"stdout: {e.stdout}")
        if e.stderr:
            print(f"stderr: {e.stderr}")
        if check:
            raise
        return e


def install_dependencies():
    """Install the project in editable mode with its dependencies."""
    print("Installing Python dependencies...")
    run_command([sys.executable, '-m', 'pip', 'install', '-e', str(Path(__file__).parent)])


def run_tests():
    """Run the test suite."""
    print("Running tests...")

    test_runner = Path(__file__).parent / 'tests' / 'run_tests.py'
    result = run_command([sys.executable, str(test_runner)], check=False)
    return result.returncode == 0


def create_distribution():
    """Create distribution package."""
    print("Creating distribution package...")

    project_root = Path(__file__).parent
    dist_dir = project_root / 'dist'

    # Clean existing dist
    if dist_dir.exists():
        shutil.rmtree(dist_dir)

    dist_dir.mkdir()

    src_files = [
        'src/',
        'tests/',
        'pypp.py',
        'DESIGN.md',
        'pyproject.toml',
        'build.py'
    ]

    for item in src_files:
        src_path = project_root / item
        if src_path.exists():
            if src_path.is_file():
                shutil.copy2(src_path, dist_dir / item)
            else:
                shutil.copytree(src_path, dist_dir / item,
                                ignore=shutil.ignore_patterns('__pycache__', '.pypp_cache'))

    print(f"Distribution created in: {dist_dir}")
    return True


def clean():
    """Clean build artifacts."""
    print("Cleaning build artifacts...")

    project_root = Path(__file__).parent

    clean_dirs = [
        'dist/',
        'build/',
        '.pypp_cache/',
    ]

    for clean_dir in clean_dirs:
        full_path = project_root / clean_dir
        if full_path.exists():
            print(f"Removing: {full_path}")
            shutil.rmtree(full_path)

    clean_patterns = [
        '**/*.pyc',
        '**/__pycache__',
        '*.egg-info',
    ]

    for pattern in clean_patterns:
        for file_path in project_root.glob(pattern):
            if file_path.is_file():
                print(f"Removing: {file_path}")
                file_path.unlink()
            elif file_path.is_dir():
                print(f"Removing: {file_path}")
                shutil.rmtree(file_path)


def validate_fixtures():
    """Check that the fixture .ppy files preprocess through the CLI."""
    print("Validating fixture files...")

    project_root = Path(__file__).parent
    fixtures_dir = project_root / 'tests' / 'fixtures'
    runner = project_root / 'pypp.py'

    success = True

    for ppy_file in sorted(fixtures_dir.glob('*.ppy')):
        print(f"Validating {ppy_file.name}...")
        result = run_command([sys.executable, str(runner), str(ppy_file)], check=False)
        if result.returncode != 0:
            print("  Preprocessing failed")
            success = False
        else:
            print("  Preprocessing successful")

    return success


def main():
    """Main build script entry point."""
    parser = argparse.ArgumentParser(description='Build PyPP')
    parser.add_argument('command', nargs='?', default='all',
                       choices=['all', 'deps', 'test', 'dist', 'clean', 'validate'],
                       help='Build command to run')
    parser.add_argument('--skip-tests', action='store_true',
                       help='Skip running tests')

    args = parser.parse_args()

    print("PyPP Build Script")
    print("=" * 40)

    success = True

    try:
        if args.command in ['all', 'deps']:
            install_dependencies()

        if args.command in ['all', 'validate']:
            if not validate_fixtures():
                success = False

        if args.command in ['all', 'test'] and not args.skip_tests:
            if not run_tests():
                success = False

        if args.command in ['all', 'dist']:
            create_distribution()

        if args.command == 'clean':
            clean()
            return

    except KeyboardInterrupt:
        print("\nBuild interrupted by user")
        success = False
    except (OSError, subprocess.CalledProcessError) as e:
        print(f"\nBuild failed with error: {e}")
        success = False

    print("\n" + "=" * 40)
    if success:
        print("Build completed successfully!")
        if args.command == 'all':
            print("\nNext steps:")
            print("1. Preprocess a file: python pypp.py module.ppy -o module.py")
            print("2. Import .ppy modules: from src.loader.hook import install; install()")
    else:
        print("Build failed!")
        sys.exit(1)


if __name__ == '__main__':
    main()
