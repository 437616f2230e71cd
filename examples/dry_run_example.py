from s3sku.runner import RunConfig, plan

if __name__ == "__main__":
    tasks = plan(RunConfig(
        csv_path="data/skus.csv",
        bucket_root="s3://my-bucket/products/",
        dest_root="downloads",
    ))
    for t in tasks:
        print(f"{t.source} -> {t.dest}")
    print("Planned:", len(tasks))
