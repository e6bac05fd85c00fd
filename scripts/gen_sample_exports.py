#!/usr/bin/env python3
"""Generate synthetic RVTools exports for performance and manual testing.

Each generated workbook carries the four core sheets (vInfo, vHost,
vPartition, vMemory) with their mandatory columns plus a few optional ones.
Header row on row 1, data from row 2, as RVTools writes them. Files can use
the legacy ``vInfoVMName`` style headers to exercise alias resolution.
"""
from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

OS_NAMES = [
    "Microsoft Windows Server 2019 (64-bit)",
    "Microsoft Windows Server 2022 (64-bit)",
    "Red Hat Enterprise Linux 8 (64-bit)",
    "Ubuntu Linux (64-bit)",
    "",
]
POWERSTATES = ["poweredOn", "poweredOff", "suspended"]
CPU_MODELS = ["Intel(R) Xeon(R) Gold 6248R", "AMD EPYC 7543"]

LEGACY_VINFO_HEADERS = {
    "VM": "vInfoVMName",
    "VM UUID": "vInfoUUID",
    "Powerstate": "vInfoPowerstate",
    "Template": "vInfoTemplate",
    "DNS Name": "vInfoGuestHostName",
    "CPUs": "vInfoCPUs",
    "Memory": "vInfoMemory",
    "Provisioned MiB": "vInfoProvisioned",
    "In Use MiB": "vInfoInUse",
    "Datacenter": "vInfoDataCenter",
    "Cluster": "vInfoCluster",
    "Host": "vInfoHost",
    "SRM Placeholder": "vInfoSRMPlaceHolder",
    "OS according to the configuration file": "vInfoOS",
    "Primary IP Address": "vInfoPrimaryIPAddress",
    "Creation Date": "vInfoCreateDate",
    "NICs": "vInfoNICs",
    "Disks": "vInfoNumVirtualDisks",
}


def generate_export_sheets(
    vms: int, hosts: int = 8, seed: int = 42, prefix: str = "site"
) -> dict[str, pd.DataFrame]:
    """Build DataFrames (canonical headers) for one synthetic export.

    Args:
        vms: Number of vInfo rows
        hosts: Number of ESXi hosts
        seed: Random seed for reproducible data
        prefix: Distinguishes names and UUIDs between generated exports
    """
    rng = np.random.default_rng(seed)
    host_names = [f"{prefix}-esx{i:02d}.corp.local" for i in range(1, hosts + 1)]
    clusters = [f"{prefix}-cl{(i % 2) + 1}" for i in range(hosts)]
    datacenter = f"{prefix}-dc"

    host_idx = rng.integers(0, hosts, vms)
    vm_names = [f"{prefix}-vm{i:05d}" for i in range(1, vms + 1)]
    uuids = [f"{prefix}-{i:08x}-0000-4000-8000-{seed:012x}" for i in range(1, vms + 1)]
    created = pd.date_range(datetime(2020, 1, 1), datetime(2024, 12, 31), periods=97)

    vinfo: dict[str, list[Any]] = {
        "VM": vm_names,
        "Powerstate": rng.choice(POWERSTATES, vms).tolist(),
        "Template": [False] * vms,
        "SRM Placeholder": [False] * vms,
        "DNS Name": [f"{n}.corp.local" for n in vm_names],
        "CPUs": rng.choice([1, 2, 4, 8, 16], vms).tolist(),
        "Memory": rng.choice([2048, 4096, 8192, 16384], vms).tolist(),
        "NICs": rng.integers(1, 4, vms).tolist(),
        "Disks": rng.integers(1, 6, vms).tolist(),
        "Provisioned MiB": np.round(rng.uniform(20_000, 500_000, vms), 2).tolist(),
        "In Use MiB": np.round(rng.uniform(5_000, 200_000, vms), 2).tolist(),
        "Primary IP Address": [f"10.{seed % 250}.{i // 250}.{i % 250}" for i in range(vms)],
        "Creation Date": [created[i].to_pydatetime() for i in rng.integers(0, len(created), vms)],
        "Datacenter": [datacenter] * vms,
        "Cluster": [clusters[i] for i in host_idx],
        "Host": [host_names[i] for i in host_idx],
        "OS according to the configuration file": rng.choice(OS_NAMES, vms).tolist(),
        "VM UUID": uuids,
    }

    vhost: dict[str, list[Any]] = {
        "Host": host_names,
        "Datacenter": [datacenter] * hosts,
        "Cluster": clusters,
        "CPU Model": rng.choice(CPU_MODELS, hosts).tolist(),
        "Speed": [2900] * hosts,
        "# CPU": [2] * hosts,
        "Cores per CPU": [24] * hosts,
        "# Cores": [48] * hosts,
        "CPU usage %": rng.integers(5, 90, hosts).tolist(),
        "# Memory": [786_432] * hosts,
        "Memory usage %": rng.integers(10, 95, hosts).tolist(),
    }

    vpartition: dict[str, list[Any]] = {"VM": [], "VM UUID": [], "Disk": [], "Capacity MiB": [], "Consumed MiB": []}
    for name, uuid in zip(vm_names, uuids, strict=True):
        for disk in ("C:\\", "D:\\")[: int(rng.integers(1, 3))]:
            capacity = float(rng.integers(40_000, 400_000))
            vpartition["VM"].append(name)
            vpartition["VM UUID"].append(uuid)
            vpartition["Disk"].append(disk)
            vpartition["Capacity MiB"].append(capacity)
            vpartition["Consumed MiB"].append(round(capacity * float(rng.uniform(0.1, 0.9)), 2))

    vmemory = {
        "VM": vm_names,
        "VM UUID": uuids,
        "Size MiB": vinfo["Memory"],
        "Reservation": [0] * vms,
    }

    return {
        "vInfo": pd.DataFrame(vinfo),
        "vHost": pd.DataFrame(vhost),
        "vPartition": pd.DataFrame(vpartition),
        "vMemory": pd.DataFrame(vmemory),
    }


def create_export_file(
    output_path: Path,
    vms: int,
    hosts: int = 8,
    seed: int = 42,
    prefix: str = "site",
    legacy_headers: bool = False,
) -> Path:
    """Write one synthetic RVTools export to ``output_path``."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    sheets = generate_export_sheets(vms, hosts, seed, prefix)
    if legacy_headers:
        sheets["vInfo"] = sheets["vInfo"].rename(columns=LEGACY_VINFO_HEADERS)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=name, index=False)
    return output_path


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic RVTools exports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # three exports of 5k VMs each
  %(prog)s out/ --files 3 --vms 5000

  # second file with vInfoVMName-style headers
  %(prog)s out/ --files 2 --legacy-every 2
        """,
    )
    parser.add_argument("output_dir", type=Path, help="Directory to write exports into")
    parser.add_argument("--files", type=int, default=2, help="Number of exports (default: 2)")
    parser.add_argument("--vms", type=int, default=1_000, help="vInfo rows per export (default: 1,000)")
    parser.add_argument("--hosts", type=int, default=8, help="Hosts per export (default: 8)")
    parser.add_argument("--seed", type=int, default=42, help="Base random seed (default: 42)")
    parser.add_argument("--legacy-every", type=int, default=0,
                        help="Use legacy vInfo headers for every Nth file (0 = never)")
    args = parser.parse_args()

    if args.files <= 0 or args.vms <= 0 or args.hosts <= 0:
        print("Error: --files, --vms and --hosts must be positive", file=sys.stderr)
        return 1

    for i in range(1, args.files + 1):
        legacy = args.legacy_every > 0 and i % args.legacy_every == 0
        path = create_export_file(
            args.output_dir / f"rvtools-export-{i:02d}.xlsx",
            args.vms,
            hosts=args.hosts,
            seed=args.seed + i,
            prefix=f"site{i}",
            legacy_headers=legacy,
        )
        print(f"Created {path} ({args.vms:,} VMs{', legacy headers' if legacy else ''})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
